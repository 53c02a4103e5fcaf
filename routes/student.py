# backend/routes/student.py
from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, session

from auth_guard import require_database, require_student
from db import db
from errors import AuthenticationRequired, Conflict, InvalidCredentials, NotFound, ValidationError
from models.attendance import AttendanceRecord
from models.document import Document
from models.senior import Senior
from models.student import Student
from models.task import Task
from routes.admin import portal_service, request_data
from services.session_store import discard_session, rotate_session

__all__ = ["student_bp"]
student_bp = Blueprint("student", __name__, url_prefix="/student")

PROFILE_FIELDS = ("email", "phone", "course", "year")


def _current_student() -> Student:
    student = Student.query.filter_by(student_id=g.student_id).first()
    if not student:
        # account removed while the session was alive
        discard_session()
        raise AuthenticationRequired("Student authentication required")
    return student


@student_bp.route("/login", methods=["POST"])
@require_database
def login():
    data = request_data()
    student_id = data.get("student_id") or ""
    password = data.get("password") or ""
    if not isinstance(student_id, str) or not isinstance(password, str):
        raise ValidationError("Student ID and password must be text")
    student_id = student_id.strip()
    if not student_id or not password:
        raise ValidationError("Student ID and password are required")

    credentials = portal_service("credentials")
    student = credentials.find_student(student_id)
    if not credentials.check(student, password):
        current_app.logger.info("[auth] student login rejected id=%s", student_id)
        raise InvalidCredentials("Invalid student ID or password")

    session["student_id"] = student.student_id
    session["student_name"] = student.name
    session["student_email"] = student.email
    rotate_session()
    current_app.logger.info("[auth] student signed in id=%s", student.student_id)
    return jsonify(success=True), 200


@student_bp.route("/logout", methods=["POST"])
@require_database
def logout():
    current_app.logger.info("[auth] student logout id=%s", session.get("student_id"))
    discard_session()
    return jsonify(success=True), 200


@student_bp.route("/dashboard", methods=["GET"])
@require_student
@require_database
def dashboard():
    student = _current_student()
    sid = student.student_id

    tasks = (
        Task.query.filter_by(student_id=sid)
        .order_by(Task.created_at.desc())
        .limit(5)
        .all()
    )
    attendance = (
        AttendanceRecord.query.filter_by(student_id=sid)
        .order_by(AttendanceRecord.date.desc(), AttendanceRecord.id.desc())
        .limit(5)
        .all()
    )
    documents = Document.query.order_by(Document.created_at.desc()).limit(3).all()

    return jsonify(
        success=True,
        student=student.to_dict(),
        studentName=session.get("student_name") or student.name,
        tasks=[t.to_dict() for t in tasks],
        attendance=[a.to_dict() for a in attendance],
        documents=[d.to_dict() for d in documents],
    ), 200


@student_bp.route("/profile", methods=["GET"])
@require_student
@require_database
def profile():
    student = Student.query.filter_by(student_id=g.student_id).first()
    if not student:
        raise NotFound("Student not found")
    return jsonify(success=True, student=student.to_dict()), 200


@student_bp.route("/profile", methods=["POST"])
@require_student
@require_database
def update_profile():
    student = _current_student()
    data = request_data()

    name = str(data.get("name") or "").strip()
    if not name:
        raise ValidationError("Name is required")

    updates = {k: str(data.get(k) or "").strip() for k in PROFILE_FIELDS if k in data}
    if "email" in updates:
        email = updates["email"].lower()
        if not email:
            raise ValidationError("Email cannot be empty")
        taken = Student.query.filter(Student.email == email, Student.id != student.id).first()
        if taken:
            raise Conflict("Email is already in use")
        updates["email"] = email

    student.name = name
    for k, v in updates.items():
        setattr(student, k, v)
    db.session.commit()

    session["student_name"] = student.name
    session["student_email"] = student.email
    return jsonify(success=True, message="Profile updated successfully"), 200


@student_bp.route("/seniors", methods=["GET"])
@require_student
@require_database
def seniors():
    rows = (
        Senior.query.filter_by(available_for_mentoring=True)
        .order_by(Senior.name.asc())
        .all()
    )
    return jsonify(success=True, seniors=[s.to_dict() for s in rows]), 200
