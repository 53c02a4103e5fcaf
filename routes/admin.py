# backend/routes/admin.py
from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request, session, url_for

from auth_guard import require_admin, require_database
from services.handshake import AdminHandshake
from services.mailer import mask_email
from services.session_store import discard_session, rotate_session
from services.students import enroll_student, save_attendance

__all__ = ["admin_bp", "request_data", "portal_service"]
admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def request_data() -> dict:
    """JSON body, falling back to form fields."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def portal_service(name: str):
    return current_app.extensions[f"portal.{name}"]


def _handshake() -> AdminHandshake:
    cfg = current_app.config
    return AdminHandshake(
        portal_service("credentials"),
        portal_service("otps"),
        portal_service("mailer"),
        session,
        allow_insecure_fallback=bool(cfg.get("ALLOW_INSECURE_OTP_FALLBACK")),
        max_attempts=int(cfg.get("OTP_MAX_ATTEMPTS") or 0),
        ttl_minutes=int(cfg.get("OTP_TTL_MINUTES") or 10),
        portal_name=cfg.get("PORTAL_NAME") or "Cloud Domain Portal",
    )


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------
@admin_bp.after_request
def add_no_store(resp):
    resp.headers["Cache-Control"] = "no-store"
    return resp


# -------------------------------------------------------------------
# Login, step 1: password → OTP
# -------------------------------------------------------------------
@admin_bp.route("/login", methods=["POST"])
@require_database
def login():
    data = request_data()
    ident = data.get("username") or data.get("email") or data.get("identifier")
    challenge = _handshake().begin(ident, data.get("password"))
    return jsonify(success=True, requireOTP=True, message=challenge.message), 200


# -------------------------------------------------------------------
# Login, step 2: OTP → elevated session
# -------------------------------------------------------------------
@admin_bp.route("/verify-otp", methods=["POST"])
@require_database
def verify_otp():
    data = request_data()
    code = data.get("otp") if data.get("otp") is not None else data.get("code")
    email = _handshake().verify(code)
    rotate_session()
    current_app.logger.info("[auth] admin signed in: %s", mask_email(email))
    return jsonify(success=True), 200


@admin_bp.route("/logout", methods=["POST"])
@require_database
def logout():
    discard_session()
    return jsonify(success=True), 200


@admin_bp.route("/me", methods=["GET"])
@require_admin
def me():
    return jsonify(success=True, email=g.admin_email), 200


# -------------------------------------------------------------------
# Students
# -------------------------------------------------------------------
@admin_bp.route("/students", methods=["POST"])
@require_admin
@require_database
def add_student():
    cfg = current_app.config
    result = enroll_student(
        request_data(),
        mailer=portal_service("mailer"),
        email_domain=cfg.get("STUDENT_EMAIL_DOMAIN") or "",
        portal_name=cfg.get("PORTAL_NAME") or "Cloud Domain Portal",
        login_url=url_for("student.login", _external=True),
    )
    return jsonify(success=True, message=result.message, id=result.student.id), 201


# -------------------------------------------------------------------
# Attendance
# -------------------------------------------------------------------
@admin_bp.route("/attendance/save", methods=["POST"])
@require_admin
@require_database
def attendance_save():
    count = save_attendance(request_data(), marked_by="Admin")
    return jsonify(success=True, message="Attendance saved successfully", count=count), 200
