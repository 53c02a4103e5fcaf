# models/senior.py
from __future__ import annotations
from db import db, utcnow


class Senior(db.Model):
    """Alumni mentor listed in the student directory."""
    __tablename__ = "seniors"

    id                      = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name                    = db.Column(db.String(120), nullable=False)
    email                   = db.Column(db.String(254), nullable=False)
    specialization          = db.Column(db.String(120), nullable=True)
    graduation_year         = db.Column(db.String(8), nullable=True)
    linkedin_profile        = db.Column(db.String(255), nullable=True)
    available_for_mentoring = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at              = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "specialization": self.specialization,
            "graduation_year": self.graduation_year,
            "linkedin_profile": self.linkedin_profile,
        }
