# backend/routes/api.py
from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from auth_guard import require_admin, require_database, require_student
from errors import ValidationError
from models.attendance import AttendanceRecord
from models.document import Document
from models.student import Student
from models.task import Task

__all__ = ["api_bp"]
api_bp = Blueprint("api", __name__, url_prefix="/api")


@api_bp.route("/admin/stats", methods=["GET"])
@require_admin
@require_database
def admin_stats():
    return jsonify(
        totalStudents=Student.query.count(),
        totalTasks=Task.query.count(),
        pendingTasks=Task.query.filter_by(status="pending").count(),
        totalDocuments=Document.query.count(),
    ), 200


@api_bp.route("/admin/students-by-batch", methods=["GET"])
@require_admin
@require_database
def students_by_batch():
    batch = (request.args.get("batch") or "").strip()
    if not batch:
        raise ValidationError("Batch parameter is required")

    rows = (
        Student.query.filter_by(batch_year=batch)
        .order_by(Student.student_id.asc())
        .all()
    )
    return jsonify([s.to_dict() for s in rows]), 200


@api_bp.route("/student/attendance", methods=["GET"])
@require_student
@require_database
def student_attendance():
    rows = (
        AttendanceRecord.query.filter_by(student_id=g.student_id)
        .order_by(AttendanceRecord.date.desc(), AttendanceRecord.id.desc())
        .all()
    )
    return jsonify(success=True, attendance=[r.to_dict() for r in rows]), 200
