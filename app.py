# backend/app.py
from __future__ import annotations

import os
from datetime import datetime, timezone

import click
from flask import Flask, jsonify, request
from flask_cors import CORS
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from auth_guard import ping_database
from config import config_for
from db import db, migrate
from errors import PortalError, PersistenceUnavailable

# Ensure models are imported so Flask-Migrate sees them
from models.admin_user import AdminUser
from models.admin_otp import AdminOtp
from models.attendance import AttendanceRecord
from models.document import Document
from models.portal_session import PortalSessionRecord
from models.senior import Senior
from models.student import Student
from models.task import Task

# Blueprints
from routes.admin import admin_bp
from routes.api import api_bp
from routes.student import student_bp

from seed import seed_all
from services.credentials import CredentialStore
from services.mailer import MailDispatcher
from services.otp_store import OtpStore
from services.session_store import ServerSideSessionInterface, SessionStore
from tasks.purge_expired import purge_expired


def create_app(config_object=None) -> Flask:
    app = Flask(__name__)

    # Respect reverse proxy headers (scheme / host) for correct URL generation
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # type: ignore[arg-type]

    # Load config + init extensions
    app.config.from_object(config_object or config_for())
    db.init_app(app)
    migrate.init_app(app, db)

    origins = app.config.get("CORS_ORIGINS") or "*"
    CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=origins != "*")

    # Collaborators for the auth handshake; tests swap these out.
    app.session_interface = ServerSideSessionInterface(SessionStore())
    app.extensions["portal.credentials"] = CredentialStore()
    app.extensions["portal.otps"] = OtpStore.from_config(app.config)
    app.extensions["portal.mailer"] = MailDispatcher.from_config(app.config)

    with app.app_context():
        # Touch models so Alembic/Flask-Migrate registers them
        _ = (AdminUser, AdminOtp, AttendanceRecord, Document, PortalSessionRecord, Senior, Student, Task)

    if not app.extensions["portal.mailer"].configured:
        app.logger.warning("[app] Email not configured. Set MAIL_LOGIN, MAIL_PASSWORD and MAIL_FROM.")
        if app.config.get("ALLOW_INSECURE_OTP_FALLBACK"):
            app.logger.warning("[app] ALLOW_INSECURE_OTP_FALLBACK is on: admin OTPs are returned in login responses.")
    if not app.config.get("SESSION_COOKIE_SECURE"):
        app.logger.info("[app] session cookie is not marked Secure; enable SESSION_COOKIE_SECURE behind TLS")

    # Health check
    @app.route("/health")
    def health_check():
        ts = datetime.now(timezone.utc).isoformat()
        try:
            ping_database()
        except Exception:
            db.session.rollback()
            app.logger.exception("[health] database ping failed")
            return jsonify(status="unhealthy", database="error", timestamp=ts), 503
        return jsonify(status="healthy", database="connected", timestamp=ts), 200

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify(error="Not Found", path=request.path), 404

    @app.errorhandler(PortalError)
    def handle_portal_error(e: PortalError):
        return e.to_response()

    @app.errorhandler(OperationalError)
    def handle_db_down(e: OperationalError):
        db.session.rollback()
        app.logger.exception("[db] operational error on %s %s", request.method, request.path)
        return PersistenceUnavailable().to_response()

    # Global error handler
    @app.errorhandler(Exception)
    def handle_any_error(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify(error=e.description), e.code
        db.session.rollback()
        app.logger.exception("[app] unhandled error on %s %s", request.method, request.path)
        return jsonify(error="Server error"), 500

    # Register blueprints
    app.register_blueprint(admin_bp)
    app.register_blueprint(student_bp)
    app.register_blueprint(api_bp)

    # CLI
    @app.cli.command("init-db")
    @click.option("--with-test-student", is_flag=True, help="Also create TEST001 / test123.")
    def init_db_cmd(with_test_student):
        db.create_all()
        seed_all(with_test_student=with_test_student)
        print("Database initialization completed.")

    @app.cli.command("seed")
    @click.option("--with-test-student", is_flag=True, help="Also create TEST001 / test123.")
    def seed_cmd(with_test_student):
        seed_all(with_test_student=with_test_student)
        print("Seeding complete.")

    @app.cli.command("purge-expired")
    def purge_expired_cmd():
        n_otps, n_sessions = purge_expired(otps=app.extensions["portal.otps"])
        print(f"Purged {n_otps} expired OTPs and {n_sessions} expired sessions.")

    return app


# Optional local entrypoint (useful for quick dev runs)
if __name__ == "__main__":
    app = create_app()
    app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "3000")),
        debug=bool(os.environ.get("FLASK_DEBUG", "")),
    )
