# models/document.py
from __future__ import annotations
from db import db, utcnow


class Document(db.Model):
    __tablename__ = "documents"

    id          = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title       = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category    = db.Column(db.String(64), nullable=True)
    filename    = db.Column(db.String(255), nullable=True)
    file_path   = db.Column(db.String(255), nullable=True)
    uploaded_by = db.Column(db.String(64), nullable=False, default="Admin")
    created_at  = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description or "",
            "category": self.category or "",
            "filename": self.filename,
            "uploaded_by": self.uploaded_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
