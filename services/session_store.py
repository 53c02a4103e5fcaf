# services/session_store.py
from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Callable

from flask import current_app, session
from flask.sessions import SessionInterface, SessionMixin
from itsdangerous import BadSignature, Signer
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import CallbackDict

from db import db, utcnow
from models.portal_session import PortalSessionRecord

__all__ = ["PortalSession", "SessionStore", "ServerSideSessionInterface", "rotate_session", "discard_session"]

log = logging.getLogger(__name__)

SALT_SESSION = "portal-session-v1"


class PortalSession(CallbackDict, SessionMixin):
    # Every session slides; the lifetime comes from PERMANENT_SESSION_LIFETIME.
    permanent = True

    def __init__(self, initial=None, sid: str | None = None, new: bool = False):
        def on_update(self):
            self.modified = True

        CallbackDict.__init__(self, initial, on_update)
        self.sid = sid
        self.new = new
        self.modified = False
        # set when the store could not be read; guards answer 503, not 401
        self.load_failed = False


class SessionStore:
    """Persistence for session payloads. Expired rows read as missing."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    def load(self, sid: str) -> dict | None:
        rec = db.session.get(PortalSessionRecord, sid)
        if rec is None:
            return None
        if rec.expires_at <= self.clock():
            db.session.delete(rec)
            db.session.commit()
            return None
        return dict(rec.data or {})

    def save(self, sid: str, data: dict, expires_at: datetime) -> None:
        rec = db.session.get(PortalSessionRecord, sid)
        if rec is None:
            rec = PortalSessionRecord(sid=sid)
            db.session.add(rec)
        rec.data = dict(data)
        rec.expires_at = expires_at
        db.session.commit()

    def delete(self, sid: str) -> None:
        PortalSessionRecord.query.filter_by(sid=sid).delete(synchronize_session=False)
        db.session.commit()

    def purge_expired(self, now: datetime | None = None) -> int:
        now = now or self.clock()
        n = (
            PortalSessionRecord.query
            .filter(PortalSessionRecord.expires_at <= now)
            .delete(synchronize_session=False)
        )
        db.session.commit()
        return n


class ServerSideSessionInterface(SessionInterface):
    """
    Keeps session data in `portal_sessions`; the cookie carries only a
    signed random id. A missing, tampered or expired cookie yields a fresh
    empty session, which every guard treats as anonymous.
    """
    session_class = PortalSession

    def __init__(self, store: SessionStore | None = None):
        self.store = store or SessionStore()

    def _signer(self, app) -> Signer:
        return Signer(app.secret_key, salt=SALT_SESSION, key_derivation="hmac")

    @staticmethod
    def _new_sid() -> str:
        return secrets.token_urlsafe(32)

    def get_expiration_time(self, app, session) -> datetime:
        # naive UTC on the store's clock, same as the expiry column
        return self.store.clock() + app.permanent_session_lifetime

    def open_session(self, app, request):
        cookie = request.cookies.get(self.get_cookie_name(app))
        if not cookie:
            return self.session_class(sid=self._new_sid(), new=True)
        try:
            sid = self._signer(app).unsign(cookie).decode("utf-8")
        except BadSignature:
            return self.session_class(sid=self._new_sid(), new=True)

        try:
            data = self.store.load(sid)
        except SQLAlchemyError:
            db.session.rollback()
            app.logger.exception("[session] load failed sid=%s…", sid[:6])
            failed = self.session_class(sid=self._new_sid(), new=True)
            failed.load_failed = True
            return failed

        if data is None:
            return self.session_class(sid=self._new_sid(), new=True)
        return self.session_class(data, sid=sid)

    def save_session(self, app, session, response):
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)

        if getattr(session, "load_failed", False):
            # leave the client's cookie alone; its record may still be intact
            return

        if not session:
            if not session.new:
                # cleared during the request (logout): drop row and cookie
                try:
                    self.store.delete(session.sid)
                except SQLAlchemyError:
                    db.session.rollback()
                    app.logger.exception("[session] delete failed sid=%s…", session.sid[:6])
                response.delete_cookie(name, domain=domain, path=path)
            return

        if session.accessed:
            response.vary.add("Cookie")

        if not self.should_set_cookie(app, session):
            return

        expires = self.get_expiration_time(app, session)
        try:
            self.store.save(session.sid, dict(session), expires)
        except SQLAlchemyError:
            db.session.rollback()
            app.logger.exception("[session] save failed sid=%s…", session.sid[:6])
            return

        response.set_cookie(
            name,
            self._signer(app).sign(session.sid).decode("utf-8"),
            expires=expires,
            httponly=self.get_cookie_httponly(app),
            domain=domain,
            path=path,
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app),
        )


def rotate_session() -> None:
    """Move the current payload to a fresh id; call when the session gains privileges."""
    interface = current_app.session_interface
    old_sid = getattr(session, "sid", None)
    if old_sid and not getattr(session, "new", True):
        interface.store.delete(old_sid)
    session.sid = interface._new_sid()
    session.new = True
    session.modified = True


def discard_session() -> None:
    """Destroy the current session record now; the response clears the cookie."""
    interface = current_app.session_interface
    sid = getattr(session, "sid", None)
    if sid and not getattr(session, "new", True):
        interface.store.delete(sid)
    session.clear()
