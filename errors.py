# backend/errors.py
from __future__ import annotations

from flask import jsonify

__all__ = [
    "PortalError",
    "ValidationError",
    "InvalidCredentials",
    "NoPendingSession",
    "InvalidOrExpiredOtp",
    "OtpAttemptsExceeded",
    "MailDeliveryFailed",
    "PersistenceUnavailable",
    "AuthenticationRequired",
    "NotFound",
    "Conflict",
]


class PortalError(Exception):
    """
    Error with a public message and HTTP status.
    The message is the only thing that crosses the API boundary.
    """
    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self):
        return jsonify(error=self.message), self.status_code


class ValidationError(PortalError):
    status_code = 400
    message = "All fields are required"


class InvalidCredentials(PortalError):
    status_code = 401
    message = "Invalid credentials"


class NoPendingSession(PortalError):
    status_code = 400
    message = "No pending login session"


class InvalidOrExpiredOtp(PortalError):
    status_code = 401
    message = "Invalid or expired OTP"


class OtpAttemptsExceeded(PortalError):
    status_code = 429
    message = "Too many attempts. Please sign in again."


class MailDeliveryFailed(PortalError):
    status_code = 500
    message = "Failed to send OTP email"


class PersistenceUnavailable(PortalError):
    status_code = 503
    message = "Database not available"


class AuthenticationRequired(PortalError):
    status_code = 401
    message = "Authentication required"


class NotFound(PortalError):
    status_code = 404
    message = "Not Found"


class Conflict(PortalError):
    status_code = 409
    message = "Already exists"
