from db import utcnow
from services.otp_store import OtpStore
from services.session_store import SessionStore


def purge_expired(now=None, *, otps: OtpStore | None = None, sessions: SessionStore | None = None):
    """Drop OTPs and sessions past their expiry. Returns (otps_removed, sessions_removed)."""
    now = now or utcnow()
    otps = otps or OtpStore()
    sessions = sessions or SessionStore()

    n_otps = otps.purge_expired(now)
    n_sessions = sessions.purge_expired(now)
    return n_otps, n_sessions
