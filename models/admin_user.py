# models/admin_user.py
from __future__ import annotations
from db import db, utcnow


class AdminUser(db.Model):
    __tablename__ = "admin_users"

    id            = db.Column(db.Integer, primary_key=True, autoincrement=True)
    email         = db.Column(db.String(254), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role          = db.Column(db.String(32), nullable=False, default="admin")
    created_at    = db.Column(db.DateTime, nullable=False, default=utcnow)
