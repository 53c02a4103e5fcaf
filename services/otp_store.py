# services/otp_store.py
from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

from db import db, utcnow
from models.admin_otp import AdminOtp
from services.mailer import mask_email

__all__ = ["OtpStore", "generate_otp_code"]

log = logging.getLogger(__name__)

OTP_MIN = 100_000
OTP_MAX = 999_999


def generate_otp_code() -> str:
    """Six decimal digits, uniform over [100000, 999999]."""
    return str(secrets.randbelow(OTP_MAX - OTP_MIN + 1) + OTP_MIN)


class OtpStore:
    """
    Short-lived admin login codes, one live code per identifier.

    Codes are stored as sha256(pepper + code); the plaintext only ever
    leaves through the return value of `issue`.
    """

    def __init__(self, *, ttl_minutes: int = 10, pepper: str = "", clock: Callable[[], datetime] = utcnow):
        self.ttl = timedelta(minutes=ttl_minutes)
        self.pepper = pepper
        self.clock = clock

    @classmethod
    def from_config(cls, config, **kwargs) -> "OtpStore":
        return cls(
            ttl_minutes=int(config.get("OTP_TTL_MINUTES") or 10),
            pepper=config.get("OTP_PEPPER") or "",
            **kwargs,
        )

    def _hash_code(self, code: str) -> str:
        return hashlib.sha256((self.pepper + code).encode("utf-8")).hexdigest()

    def issue(self, identifier: str) -> str:
        code = generate_otp_code()
        now = self.clock()
        # delete + insert commit together: an older code never outlives the new one
        AdminOtp.query.filter_by(email=identifier).delete(synchronize_session=False)
        db.session.add(AdminOtp(
            email=identifier,
            code_hash=self._hash_code(code),
            expires_at=now + self.ttl,
            created_at=now,
        ))
        db.session.commit()
        log.info("[otp] issued identifier=%s ttl=%ss", mask_email(identifier), int(self.ttl.total_seconds()))
        return code

    def verify(self, identifier: str, code: str) -> bool:
        """Consume the live code for `identifier`. Wrong and expired codes look the same."""
        if not identifier or not code:
            return False
        now = self.clock()
        consumed = (
            AdminOtp.query
            .filter(
                AdminOtp.email == identifier,
                AdminOtp.code_hash == self._hash_code(code),
                AdminOtp.expires_at > now,
            )
            .delete(synchronize_session=False)
        )
        if not consumed:
            db.session.rollback()
            return False
        AdminOtp.query.filter_by(email=identifier).delete(synchronize_session=False)
        db.session.commit()
        log.info("[otp] verified identifier=%s", mask_email(identifier))
        return True

    def revoke(self, identifier: str) -> int:
        n = AdminOtp.query.filter_by(email=identifier).delete(synchronize_session=False)
        db.session.commit()
        return n

    def purge_expired(self, now: datetime | None = None) -> int:
        now = now or self.clock()
        n = AdminOtp.query.filter(AdminOtp.expires_at <= now).delete(synchronize_session=False)
        db.session.commit()
        return n
