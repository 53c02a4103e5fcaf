# models/attendance.py
from __future__ import annotations
from db import db, utcnow


class AttendanceRecord(db.Model):
    __tablename__ = "attendance"
    __table_args__ = (
        db.Index("ix_attendance_student_date", "student_id", "date"),
        db.Index("ix_attendance_session", "date", "subject", "batch"),
    )

    id         = db.Column(db.Integer, primary_key=True, autoincrement=True)
    student_id = db.Column(db.String(64), nullable=False)
    date       = db.Column(db.Date, nullable=False)
    subject    = db.Column(db.String(120), nullable=False)
    batch      = db.Column(db.String(32), nullable=False)
    time       = db.Column(db.String(32), nullable=False)
    status     = db.Column(db.String(20), nullable=False)            # present | absent | late ...
    marked_by  = db.Column(db.String(64), nullable=False, default="Admin")
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "date": self.date.isoformat() if self.date else None,
            "subject": self.subject,
            "batch": self.batch,
            "time": self.time,
            "status": self.status,
            "marked_by": self.marked_by,
        }
