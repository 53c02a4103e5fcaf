from __future__ import annotations

import re
from datetime import timedelta

import pytest

from app import create_app
from config import TestingConfig
from db import db, utcnow
from models.admin_user import AdminUser
from models.student import Student
from services.credentials import CredentialStore
from services.mailer import DeliveryOutcome
from services.otp_store import OtpStore

ADMIN_EMAIL = "admin@x.com"
ADMIN_PASSWORD = "correct horse battery"
STUDENT_ID = "CS2024-001"
STUDENT_PASSWORD = "student-pass"

_CODE_RE = re.compile(r"\b(\d{6})\b")


class RecordingMailer:
    """Mail dispatcher stand-in: records every message and returns a fixed outcome."""

    configured = True

    def __init__(self, outcome: DeliveryOutcome = DeliveryOutcome.DELIVERED):
        self.outcome = outcome
        self.sent: list[dict] = []

    def send(self, to, subject, html="", text=""):
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return self.outcome

    def last_code(self) -> str:
        match = _CODE_RE.search(self.sent[-1]["text"])
        assert match, "no code in last message"
        return match.group(1)


class FakeClock:
    def __init__(self):
        self.now = utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(mailer, clock):
    app = create_app(TestingConfig)
    app.extensions["portal.mailer"] = mailer
    app.extensions["portal.otps"] = OtpStore.from_config(app.config, clock=clock)
    app.session_interface.store.clock = clock

    with app.app_context():
        db.create_all()
        db.session.add(AdminUser(
            email=ADMIN_EMAIL,
            password_hash=CredentialStore.hash_password(ADMIN_PASSWORD),
        ))
        db.session.add(Student(
            student_id=STUDENT_ID,
            name="Asha Rao",
            email="asha.rao@gmail.com",
            password_hash=CredentialStore.hash_password(STUDENT_PASSWORD),
            department="Computer Science",
            batch_year="2024-2028",
        ))
        db.session.commit()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def otp_store(app):
    return app.extensions["portal.otps"]


@pytest.fixture
def begin_admin_login(client, mailer):
    """Run step 1 and return the code that was mailed."""
    def _begin() -> str:
        resp = client.post("/admin/login", json={"username": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        return mailer.last_code()

    return _begin


@pytest.fixture
def admin_client(client, begin_admin_login):
    code = begin_admin_login()
    resp = client.post("/admin/verify-otp", json={"otp": code})
    assert resp.status_code == 200, resp.get_json()
    return client


@pytest.fixture
def student_client(client):
    resp = client.post("/student/login", json={"student_id": STUDENT_ID, "password": STUDENT_PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return client
