"""
Server-side session storage.

The cookie carries only an opaque session id; the session contents live in the
``sessions`` table next to the rest of the data. Selected with
``SESSION_BACKEND=db`` (the default). ``SESSION_BACKEND=cookie`` keeps Flask's
signed-cookie sessions instead.
"""
from __future__ import annotations

import secrets
from datetime import datetime
from typing import Any

from flask import Flask
from flask.json.tag import TaggedJSONSerializer
from flask.sessions import SessionInterface, SessionMixin
from sqlalchemy import delete
from sqlalchemy.orm import Session
from werkzeug.datastructures import CallbackDict

from app.bikeshop.db import session_scope
from app.bikeshop.models import ServerSession


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class ServerSideSession(CallbackDict, SessionMixin):
    def __init__(self, initial: dict[str, Any] | None = None, sid: str | None = None, new: bool = False):
        def on_update(self) -> None:
            self.modified = True

        super().__init__(initial, on_update)
        self.sid = sid or new_session_id()
        self.new = new
        self.modified = False
        self.previous_sid: str | None = None

    def regenerate(self) -> None:
        """Move the session to a fresh id; the old row is dropped on save."""
        if self.previous_sid is None:
            self.previous_sid = self.sid
        self.sid = new_session_id()
        self.modified = True


class DatabaseSessionInterface(SessionInterface):
    serializer = TaggedJSONSerializer()
    session_class = ServerSideSession

    def open_session(self, app: Flask, request) -> ServerSideSession:
        sid = request.cookies.get(self.get_cookie_name(app))
        if not sid:
            return self.session_class(new=True)
        with session_scope(app) as s:
            row = s.get(ServerSession, sid)
            if row is None:
                return self.session_class(new=True)
            if row.expires_at <= datetime.utcnow():
                s.delete(row)
                return self.session_class(new=True)
            data = self.serializer.loads(row.data)
        return self.session_class(data, sid=sid)

    def save_session(self, app: Flask, session: ServerSideSession, response) -> None:  # type: ignore[override]
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)

        if not session:
            # Emptied (logout) or never used: nothing to keep server-side.
            if session.modified or session.previous_sid:
                with session_scope(app) as s:
                    _delete_rows(s, session.sid, session.previous_sid)
                response.delete_cookie(name, domain=domain, path=path)
            return

        if not self.should_set_cookie(app, session):
            return

        expires = self.get_expiration_time(app, session)
        stored_until = expires or datetime.utcnow() + app.permanent_session_lifetime
        with session_scope(app) as s:
            if session.previous_sid:
                _delete_rows(s, session.previous_sid)
            row = s.get(ServerSession, session.sid)
            if row is None:
                row = ServerSession(id=session.sid)
                s.add(row)
            row.data = self.serializer.dumps(dict(session))
            row.user_id = session.get("user_id")
            row.expires_at = stored_until.replace(tzinfo=None)
        session.previous_sid = None

        response.set_cookie(
            name,
            session.sid,
            expires=expires,
            httponly=self.get_cookie_httponly(app),
            domain=domain,
            path=path,
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app),
        )


def _delete_rows(s: Session, *sids: str | None) -> None:
    ids = [sid for sid in sids if sid]
    if ids:
        s.execute(delete(ServerSession).where(ServerSession.id.in_(ids)))


def rotate_session(session: SessionMixin) -> None:
    """Issue a new session id (server-side sessions only; cookie sessions have no id)."""
    regenerate = getattr(session, "regenerate", None)
    if regenerate is not None:
        regenerate()


def purge_expired_sessions(s: Session, now: datetime | None = None) -> int:
    """Delete expired session rows. Returns the number removed."""
    now = now or datetime.utcnow()
    result = s.execute(delete(ServerSession).where(ServerSession.expires_at <= now))
    return result.rowcount or 0
