# services/students.py
"""
Student roster and attendance services.

Public API:
  - enroll_student(fields: dict, *, mailer, email_domain: str,
                   portal_name: str, login_url: str) -> EnrollmentResult
  - save_attendance(payload: dict, *, marked_by: str = "Admin") -> int

enroll_student raises ValidationError / Conflict; save_attendance raises
ValidationError. Both commit on success.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from dateutil import parser as dtparse
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from db import db
from errors import Conflict, ValidationError
from models.attendance import AttendanceRecord
from models.student import Student
from services.credentials import CredentialStore, generate_password
from services.mailer import DeliveryOutcome

__all__ = ["EnrollmentResult", "enroll_student", "save_attendance"]

log = logging.getLogger(__name__)

ENROLL_FIELDS = ("roll_num", "name", "department", "email", "batch_year")


@dataclass(frozen=True)
class EnrollmentResult:
    student: Student
    outcome: DeliveryOutcome
    message: str


def _credentials_html(*, name, roll_num, password, batch_year, department, portal_name, login_url) -> str:
    return f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #1e3a8a;">Welcome to {portal_name}</h2>
        <p>Dear {name},</p>
        <p>Your student account has been created successfully. Here are your login credentials:</p>
        <div style="background: #f0f8ff; padding: 20px; border-radius: 10px; margin: 20px 0;">
          <p><strong>Student ID:</strong> {roll_num}</p>
          <p><strong>Password:</strong> {password}</p>
          <p><strong>Batch Year:</strong> {batch_year}</p>
          <p><strong>Department:</strong> {department}</p>
        </div>
        <p>You can login to the student portal at: <a href="{login_url}">Student Login</a></p>
        <p>Please keep these credentials secure and change your password after first login.</p>
        <p>Best regards,<br>{portal_name} Team</p>
      </div>
    """


def enroll_student(fields: dict, *, mailer, email_domain: str, portal_name: str, login_url: str) -> EnrollmentResult:
    data = {k: str(fields.get(k) or "").strip() for k in ENROLL_FIELDS}
    if not all(data.values()):
        raise ValidationError("All fields are required")

    email = data["email"].lower()
    domain = (email_domain or "").lstrip("@").lower()
    if domain and not email.endswith("@" + domain):
        raise ValidationError(f"Email must be a {domain} address")

    existing = Student.query.filter(
        or_(Student.student_id == data["roll_num"], Student.email == email)
    ).first()
    if existing:
        raise Conflict("Student with this roll number or email already exists")

    password = generate_password()
    student = Student(
        student_id=data["roll_num"],
        name=data["name"],
        email=email,
        password_hash=CredentialStore.hash_password(password),
        department=data["department"],
        batch_year=data["batch_year"],
    )
    db.session.add(student)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race with a concurrent enrollment of the same roll number/email
        db.session.rollback()
        raise Conflict("Student with this roll number or email already exists")
    log.info("[students] created %s", student.student_id)

    outcome = mailer.send(
        email,
        f"Your {portal_name} Account Credentials",
        _credentials_html(
            name=data["name"], roll_num=data["roll_num"], password=password,
            batch_year=data["batch_year"], department=data["department"],
            portal_name=portal_name, login_url=login_url,
        ),
        f"Student ID: {data['roll_num']}\nPassword: {password}",
    )

    creds = f"ID: {data['roll_num']}, Password: {password}"
    if outcome is DeliveryOutcome.DELIVERED:
        message = "Student added successfully and credentials sent via email"
    elif outcome is DeliveryOutcome.UNAVAILABLE:
        message = f"Student added successfully. Credentials: {creds}"
    else:
        message = f"Student added successfully but failed to send email. Credentials: {creds}"
    return EnrollmentResult(student=student, outcome=outcome, message=message)


def save_attendance(payload: dict, *, marked_by: str = "Admin") -> int:
    """Replace every record for (date, subject, batch) with the submitted marks."""
    date_raw = str(payload.get("date") or "").strip()
    subject = str(payload.get("subject") or "").strip()
    batch = str(payload.get("batch") or "").strip()
    time_ = str(payload.get("time") or "").strip()
    marks = payload.get("attendance")

    if not (date_raw and subject and batch and time_ and marks):
        raise ValidationError("All fields are required")
    if not isinstance(marks, dict):
        raise ValidationError("attendance must map student IDs to a status")

    try:
        day = dtparse.isoparse(date_raw).date()
    except (ValueError, OverflowError):
        raise ValidationError("date must be an ISO date (YYYY-MM-DD)")

    rows = []
    for student_id, status in marks.items():
        status = str(status or "").strip().lower()
        if not status:
            raise ValidationError(f"Missing status for {student_id}")
        rows.append(AttendanceRecord(
            student_id=str(student_id),
            date=day,
            subject=subject,
            batch=batch,
            time=time_,
            status=status,
            marked_by=marked_by,
        ))

    AttendanceRecord.query.filter_by(date=day, subject=subject, batch=batch).delete(synchronize_session=False)
    db.session.add_all(rows)
    db.session.commit()
    log.info("[attendance] saved %d records for %s %s %s", len(rows), day, subject, batch)
    return len(rows)
