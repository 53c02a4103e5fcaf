# auth_guard.py
from __future__ import annotations

from functools import wraps

from flask import current_app, g, request, session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from db import db
from errors import AuthenticationRequired, PersistenceUnavailable
from services.mailer import mask_email

__all__ = ["require_admin", "require_student", "require_database", "ping_database"]


def ping_database() -> None:
    """SELECT 1, with one reconnect retry if the pooled connection dropped."""
    try:
        db.session.execute(text("SELECT 1"))
    except OperationalError as e:
        current_app.logger.warning("[db] connection dropped; retrying once… %s", e)
        db.session.remove()
        db.engine.dispose()
        db.session.execute(text("SELECT 1"))


def _session_unreadable() -> None:
    # the session store lives in the database too
    if getattr(session, "load_failed", False):
        current_app.logger.warning("[db] session store unreadable for %s %s", request.method, request.path)
        raise PersistenceUnavailable()


def require_database(f):
    """Short-circuit with 503 when the database cannot be reached."""
    @wraps(f)
    def wrapped(*args, **kwargs):
        _session_unreadable()
        try:
            ping_database()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("[db] unavailable for %s %s", request.method, request.path)
            raise PersistenceUnavailable()
        return f(*args, **kwargs)

    return wrapped

def require_admin(f):
    """
    Only sessions that completed both login steps get through.
    Anything else (no cookie, expired, pending OTP) gets the same 401.
    """
    @wraps(f)
    def wrapped(*args, **kwargs):
        _session_unreadable()
        if session.get("is_admin") is not True or not session.get("admin_email"):
            raise AuthenticationRequired("Admin authentication required")

        g.admin_email = session["admin_email"]  # type: ignore[attr-defined]
        current_app.logger.info(
            "[guard] %s %s admin=%s ip=%s",
            request.method, request.path, mask_email(g.admin_email), request.remote_addr,
        )
        return f(*args, **kwargs)

    return wrapped


def require_student(f):
    @wraps(f)
    def wrapped(*args, **kwargs):
        _session_unreadable()
        student_id = session.get("student_id")
        if not student_id:
            raise AuthenticationRequired("Student authentication required")
        g.student_id = student_id  # type: ignore[attr-defined]
        return f(*args, **kwargs)

    return wrapped
