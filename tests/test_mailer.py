from __future__ import annotations

import smtplib

import pytest

from services.mailer import DeliveryOutcome, MailDispatcher, mask_email


class FakeSMTP:
    """Records messages; instances are shared through the class attribute."""

    sent = []
    fail_ports = set()

    def __init__(self, host, port, context=None, timeout=None):
        if port in self.fail_ports:
            raise OSError(f"connection refused on {port}")
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def starttls(self, context=None):
        pass

    def login(self, user, password):
        if password == "bad":
            raise smtplib.SMTPAuthenticationError(535, b"auth failed")

    def send_message(self, msg):
        FakeSMTP.sent.append((self.port, msg))


@pytest.fixture(autouse=True)
def fake_smtp(monkeypatch):
    FakeSMTP.sent = []
    FakeSMTP.fail_ports = set()
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


def _dispatcher(**overrides):
    kwargs = dict(host="smtp.test", login="portal@test", password="secret", mail_from="portal@test")
    kwargs.update(overrides)
    return MailDispatcher(**kwargs)


def test_unconfigured_dispatcher_reports_unavailable(fake_smtp):
    mailer = _dispatcher(login=None)
    assert mailer.configured is False
    assert mailer.send("a@x.com", "hi", text="body") is DeliveryOutcome.UNAVAILABLE
    assert fake_smtp.sent == []


def test_delivered_on_first_port(fake_smtp):
    outcome = _dispatcher().send("a@x.com", "Subject", html="<p>hi</p>", text="hi")
    assert outcome is DeliveryOutcome.DELIVERED
    assert outcome.delivered
    port, msg = fake_smtp.sent[0]
    assert port == 587
    assert msg["To"] == "a@x.com"
    assert msg["From"] == "portal@test"
    assert msg["Subject"] == "Subject"


def test_falls_through_port_plan(fake_smtp):
    fake_smtp.fail_ports = {587, 2525}
    assert _dispatcher().send("a@x.com", "s", text="t") is DeliveryOutcome.DELIVERED
    assert fake_smtp.sent[0][0] == 465


def test_every_attempt_failing_is_transient(fake_smtp):
    fake_smtp.fail_ports = {587, 2525, 465}
    assert _dispatcher().send("a@x.com", "s", text="t") is DeliveryOutcome.TRANSIENT_FAILURE


def test_auth_error_is_transient(fake_smtp):
    outcome = _dispatcher(password="bad").send("a@x.com", "s", text="t")
    assert outcome is DeliveryOutcome.TRANSIENT_FAILURE
    assert fake_smtp.sent == []


def test_from_config():
    mailer = MailDispatcher.from_config({"MAIL_LOGIN": "u", "MAIL_PASSWORD": "p", "MAIL_FROM": "u@x"})
    assert mailer.host == "smtp.gmail.com"
    assert mailer.timeout == 20
    assert mailer.configured


@pytest.mark.parametrize("raw,masked", [
    ("admin@example.com", "a***@e***"),
    ("", ""),
    (None, ""),
    ("abc", "abc"),
    ("abcdefghij", "abcdef…"),
])
def test_mask_email(raw, masked):
    assert mask_email(raw) == masked
