# services/handshake.py
"""
Two-step admin sign-in.

    ANONYMOUS --begin(email, password)--> AWAITING_OTP --verify(code)--> AUTHENTICATED

The controller owns no storage of its own. It is built per request around
the caller's session mapping and the three collaborators it needs:

  * credentials  -> find_admin(identifier), check(record, raw)
  * otps         -> issue(identifier), verify(identifier, code), revoke(identifier)
  * mailer       -> send(to, subject, html, text) -> DeliveryOutcome

Session keys written here:
  pending_admin_email  identifier that passed the password step
  admin_email          identifier that passed the OTP step
  is_admin             elevation flag; only ever set by a verified OTP
  otp_attempts         wrong codes submitted for the pending login
"""
from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import MutableMapping, Optional

from errors import (
    InvalidCredentials,
    InvalidOrExpiredOtp,
    MailDeliveryFailed,
    NoPendingSession,
    OtpAttemptsExceeded,
    ValidationError,
)
from services.mailer import DeliveryOutcome, mask_email

__all__ = ["AdminHandshake", "HandshakeState", "LoginChallenge"]

log = logging.getLogger(__name__)

PENDING_KEY = "pending_admin_email"
ADMIN_KEY = "admin_email"
ELEVATED_KEY = "is_admin"
ATTEMPTS_KEY = "otp_attempts"

_CODE_RE = re.compile(r"\d{6}")


class HandshakeState(enum.Enum):
    ANONYMOUS = "anonymous"
    AWAITING_OTP = "awaiting_otp"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class LoginChallenge:
    code_sent: bool
    message: str
    code: Optional[str] = None  # only populated on the insecure fallback path


def _otp_email_html(code: str, ttl_minutes: int) -> str:
    return f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #1e3a8a;">Admin Login OTP Verification</h2>
        <p>Your OTP for admin login is:</p>
        <div style="background: #f0f8ff; padding: 20px; text-align: center; margin: 20px 0;">
          <h1 style="color: #1e3a8a; font-size: 2em; margin: 0;">{code}</h1>
        </div>
        <p>This OTP will expire in {ttl_minutes} minutes.</p>
        <p>If you didn't request this login, please ignore this email.</p>
      </div>
    """


class AdminHandshake:
    def __init__(
        self,
        credentials,
        otps,
        mailer,
        session: MutableMapping,
        *,
        allow_insecure_fallback: bool = False,
        max_attempts: int = 0,
        ttl_minutes: int = 10,
        portal_name: str = "Cloud Domain Portal",
    ):
        self.credentials = credentials
        self.otps = otps
        self.mailer = mailer
        self.session = session
        self.allow_insecure_fallback = allow_insecure_fallback
        self.max_attempts = max(0, int(max_attempts or 0))
        self.ttl_minutes = ttl_minutes
        self.portal_name = portal_name

    # ------------------------------------------------------------------
    @property
    def state(self) -> HandshakeState:
        if self.session.get(ELEVATED_KEY) is True and self.session.get(ADMIN_KEY):
            return HandshakeState.AUTHENTICATED
        if self.session.get(PENDING_KEY):
            return HandshakeState.AWAITING_OTP
        return HandshakeState.ANONYMOUS

    @property
    def admin_email(self) -> Optional[str]:
        if self.state is HandshakeState.AUTHENTICATED:
            return self.session.get(ADMIN_KEY)
        return None

    def _reset(self) -> None:
        for key in (PENDING_KEY, ADMIN_KEY, ELEVATED_KEY, ATTEMPTS_KEY):
            self.session.pop(key, None)

    # ------------------------------------------------------------------
    # Step 1: password
    # ------------------------------------------------------------------
    def begin(self, identifier: str, password: str) -> LoginChallenge:
        identifier = "" if identifier is None else identifier
        password = "" if password is None else password
        if not isinstance(identifier, str) or not isinstance(password, str):
            raise ValidationError("Username and password must be text")
        identifier = identifier.strip()
        if not identifier or not password:
            raise ValidationError("Username and password are required")

        admin = self.credentials.find_admin(identifier)
        if not self.credentials.check(admin, password):
            log.info("[auth] admin login rejected for %s", mask_email(identifier))
            raise InvalidCredentials()

        code = self.otps.issue(identifier)
        outcome = self.mailer.send(
            identifier,
            f"Admin Login OTP - {self.portal_name}",
            _otp_email_html(code, self.ttl_minutes),
            f"Your admin login OTP is {code}. It expires in {self.ttl_minutes} minutes.",
        )

        if outcome is DeliveryOutcome.DELIVERED:
            challenge = LoginChallenge(code_sent=True, message="OTP sent to your email")
        elif outcome is DeliveryOutcome.UNAVAILABLE and self.allow_insecure_fallback:
            log.warning(
                "[auth] mail not configured; returning OTP for %s in the response "
                "(ALLOW_INSECURE_OTP_FALLBACK is on)", mask_email(identifier),
            )
            challenge = LoginChallenge(
                code_sent=False,
                message=f"OTP: {code} (Email not configured)",
                code=code,
            )
        else:
            self.otps.revoke(identifier)
            if outcome is DeliveryOutcome.UNAVAILABLE:
                raise MailDeliveryFailed("Email delivery is not configured", status_code=503)
            raise MailDeliveryFailed()

        self._reset()
        self.session[PENDING_KEY] = identifier
        self.session[ATTEMPTS_KEY] = 0
        return challenge

    # ------------------------------------------------------------------
    # Step 2: one-time code
    # ------------------------------------------------------------------
    def verify(self, code: str) -> str:
        identifier = self.session.get(PENDING_KEY)
        if not identifier:
            raise NoPendingSession()

        code = str(code if code is not None else "").strip()
        if not code:
            raise ValidationError("OTP is required")

        attempts = int(self.session.get(ATTEMPTS_KEY) or 0)
        if self.max_attempts and attempts >= self.max_attempts:
            self.otps.revoke(identifier)
            self._reset()
            log.warning("[auth] OTP attempts exhausted for %s", mask_email(identifier))
            raise OtpAttemptsExceeded()

        if not _CODE_RE.fullmatch(code) or not self.otps.verify(identifier, code):
            self.session[ATTEMPTS_KEY] = attempts + 1
            raise InvalidOrExpiredOtp()

        self._reset()
        self.session[ADMIN_KEY] = identifier
        self.session[ELEVATED_KEY] = True
        log.info("[auth] admin session elevated for %s", mask_email(identifier))
        return identifier
