# services/credentials.py
from __future__ import annotations

import secrets
import string

from werkzeug.security import check_password_hash, generate_password_hash

from models.admin_user import AdminUser
from models.student import Student

__all__ = ["CredentialStore", "generate_password"]

_PASSWORD_ALPHABET = string.ascii_letters + string.digits + "@#$"

# Compared against when the identifier is unknown, so both failure paths hash once.
_DUMMY_HASH = generate_password_hash(secrets.token_urlsafe(16))


def generate_password(length: int = 8) -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


class CredentialStore:
    """Read-only lookup of admin and student credentials."""

    def find_admin(self, identifier: str) -> AdminUser | None:
        if not identifier:
            return None
        return AdminUser.query.filter_by(email=identifier).first()

    def find_student(self, student_id: str) -> Student | None:
        if not student_id:
            return None
        return Student.query.filter_by(student_id=student_id).first()

    @staticmethod
    def hash_password(raw: str) -> str:
        return generate_password_hash(raw)

    @staticmethod
    def verify(raw: str, password_hash: str | None) -> bool:
        if raw is not None and not isinstance(raw, str):
            return False
        try:
            return check_password_hash(password_hash or _DUMMY_HASH, raw or "")
        except ValueError:
            # unknown hash method stored in the row
            return False

    def check(self, record, raw: str) -> bool:
        """Verify `raw` against `record.password_hash`, paying the hash cost even when `record` is None."""
        if record is None:
            self.verify(raw, _DUMMY_HASH)
            return False
        return self.verify(raw, record.password_hash)
