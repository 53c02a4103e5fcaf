from __future__ import annotations

from sqlalchemy.exc import OperationalError

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD
from models.admin_user import AdminUser
from models.senior import Senior
from models.student import Student
from services.session_store import SessionStore


def _db_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("server has gone away"))


def test_health_ok(client):
    resp = client.get("/health")
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert "timestamp" in body


def test_health_reports_database_down(client, monkeypatch):
    monkeypatch.setattr("app.ping_database", _db_down)
    resp = client.get("/health")
    assert resp.status_code == 503
    assert resp.get_json()["status"] == "unhealthy"


def test_database_precondition_returns_503(client, mailer, monkeypatch):
    monkeypatch.setattr("auth_guard.ping_database", _db_down)
    resp = client.post("/admin/login", json={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 503
    assert resp.get_json() == {"error": "Database not available"}
    assert mailer.sent == []


def test_unknown_route_is_json_404(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Not Found", "path": "/nope"}


def test_unexpected_error_is_generic_500(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("secret detail")

    monkeypatch.setattr("services.credentials.CredentialStore.find_admin", boom)
    resp = client.post("/admin/login", json={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Server error"}


def test_seed_cli_is_idempotent(app):
    app.config.update(ADMIN_EMAIL="root@x.com", ADMIN_PASSWORD="pw")
    runner = app.test_cli_runner()
    for _ in range(2):
        result = runner.invoke(args=["seed", "--with-test-student"])
        assert result.exit_code == 0, result.output

    with app.app_context():
        assert AdminUser.query.filter_by(email="root@x.com").count() == 1
        assert Senior.query.count() == 4
        assert Student.query.filter_by(student_id="TEST001").count() == 1


def test_seeded_test_student_can_log_in(app, client):
    app.test_cli_runner().invoke(args=["seed", "--with-test-student"])
    resp = client.post("/student/login", json={"student_id": "TEST001", "password": "test123"})
    assert resp.status_code == 200


def test_unreadable_session_store_is_503_not_logged_out(admin_client, monkeypatch):
    monkeypatch.setattr(SessionStore, "load", _db_down)
    for path in ("/api/admin/stats", "/admin/me"):
        resp = admin_client.get(path)
        assert resp.status_code == 503, path
        assert resp.get_json() == {"error": "Database not available"}
    assert admin_client.post("/admin/logout").status_code == 503

    # the cookie survives the outage
    monkeypatch.undo()
    assert admin_client.get("/admin/me").status_code == 200


def test_unreadable_session_store_for_students(student_client, monkeypatch):
    monkeypatch.setattr(SessionStore, "load", _db_down)
    resp = student_client.get("/student/dashboard")
    assert resp.status_code == 503
    assert resp.get_json() == {"error": "Database not available"}
