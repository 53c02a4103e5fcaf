# models/student.py
from __future__ import annotations
from db import db, utcnow


class Student(db.Model):
    __tablename__ = "students"

    id            = db.Column(db.Integer, primary_key=True, autoincrement=True)
    student_id    = db.Column(db.String(64), nullable=False, unique=True, index=True)   # roll number
    name          = db.Column(db.String(120), nullable=False)
    email         = db.Column(db.String(254), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    department    = db.Column(db.String(120), nullable=False)
    batch_year    = db.Column(db.String(32), nullable=False, index=True)               # e.g. '2024-2028'
    phone         = db.Column(db.String(32), nullable=False, default="")
    course        = db.Column(db.String(120), nullable=False, default="Cloud Computing")
    year          = db.Column(db.String(32), nullable=False, default="1st Year")
    profile_image = db.Column(db.String(255), nullable=False, default="")

    created_at    = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at    = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "name": self.name,
            "email": self.email,
            "department": self.department,
            "batch_year": self.batch_year,
            "phone": self.phone or "",
            "course": self.course or "",
            "year": self.year or "",
            "profile_image": self.profile_image or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
