# models/portal_session.py
from __future__ import annotations
from db import db, utcnow


class PortalSessionRecord(db.Model):
    """Server-side session payload keyed by the opaque id held in the cookie."""
    __tablename__ = "portal_sessions"

    sid        = db.Column(db.String(64), primary_key=True)
    data       = db.Column(db.JSON, nullable=False, default=dict)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
