# models/admin_otp.py
from __future__ import annotations
from db import db, utcnow


class AdminOtp(db.Model):
    __tablename__ = "admin_otps"

    id         = db.Column(db.Integer, primary_key=True, autoincrement=True)
    email      = db.Column(db.String(254), nullable=False, index=True)
    code_hash  = db.Column(db.String(64), nullable=False)          # sha256 hex string
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
