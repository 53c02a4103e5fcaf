# services/mailer.py
from __future__ import annotations

import enum
import logging
import smtplib
import socket
import ssl
from email.message import EmailMessage
from typing import Optional

__all__ = ["DeliveryOutcome", "MailDispatcher", "mask_email"]

log = logging.getLogger(__name__)

_PORT_PLAN = [("STARTTLS", 587), ("STARTTLS", 2525), ("SSL", 465)]


class DeliveryOutcome(enum.Enum):
    DELIVERED = "delivered"
    UNAVAILABLE = "unavailable"              # no SMTP credentials configured
    TRANSIENT_FAILURE = "transient_failure"  # configured, but every attempt failed

    @property
    def delivered(self) -> bool:
        return self is DeliveryOutcome.DELIVERED


def mask_email(s: Optional[str]) -> str:
    if not s:
        return ""
    if "@" in s:
        user, dom = s.split("@", 1)
        return f"{user[:1]}***@{dom[:1]}***"
    return (s[:6] + "…") if len(s) > 6 else s


class MailDispatcher:
    """
    Sends HTML mail through an SMTP relay.

    `send` never raises for delivery problems; it reports a DeliveryOutcome
    and leaves the policy (fallback or hard error) to the caller.
    """

    def __init__(
        self,
        *,
        host: str,
        login: Optional[str],
        password: Optional[str],
        mail_from: Optional[str],
        timeout: int = 20,
        port_plan=None,
    ):
        self.host = host
        self.login = login
        self.password = password
        self.mail_from = mail_from
        self.timeout = timeout
        self.port_plan = list(port_plan or _PORT_PLAN)

    @classmethod
    def from_config(cls, config) -> "MailDispatcher":
        return cls(
            host=config.get("MAIL_HOST") or "smtp.gmail.com",
            login=config.get("MAIL_LOGIN"),
            password=config.get("MAIL_PASSWORD"),
            mail_from=config.get("MAIL_FROM"),
            timeout=int(config.get("MAIL_TIMEOUT") or 20),
        )

    @property
    def configured(self) -> bool:
        return bool(self.login and self.password and self.mail_from)

    def _message(self, to: str, subject: str, html: str, text: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.mail_from
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text or "")
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    def _deliver(self, mode: str, port: int, msg: EmailMessage) -> None:
        ctx = ssl.create_default_context()
        if mode == "SSL":
            with smtplib.SMTP_SSL(self.host, port, context=ctx, timeout=self.timeout) as s:
                s.login(self.login, self.password)
                s.send_message(msg)
        else:
            with smtplib.SMTP(self.host, port, timeout=self.timeout) as s:
                s.ehlo()
                s.starttls(context=ctx)
                s.ehlo()
                s.login(self.login, self.password)
                s.send_message(msg)

    def send(self, to: str, subject: str, html: str = "", text: str = "") -> DeliveryOutcome:
        if not self.configured:
            log.warning("[mail] not configured; skipping send to %s", mask_email(to))
            return DeliveryOutcome.UNAVAILABLE

        msg = self._message(to, subject, html, text)
        last_err: Optional[Exception] = None

        for mode, port in self.port_plan:
            try:
                self._deliver(mode, port, msg)
                log.info("[mail] sent via %s:%s as %s to %s",
                         self.host, port, mask_email(self.login), mask_email(to))
                return DeliveryOutcome.DELIVERED
            except (smtplib.SMTPException, OSError, socket.error) as e:
                last_err = e
                log.warning("[mail] attempt %s %s:%s failed: %r", mode, self.host, port, e)

        log.error("[mail] all SMTP attempts failed for %s; last error: %r", mask_email(to), last_err)
        return DeliveryOutcome.TRANSIENT_FAILURE
