from __future__ import annotations

import uuid
from urllib.parse import quote

from flask import Blueprint, current_app, g, redirect, render_template, request, session, url_for

from app.bikeshop.accounts import LoginRateLimiter, end_session, login, signup_user, start_session
from app.bikeshop.audit import record_event
from app.bikeshop.db import commit, db_session
from app.bikeshop.errors import AuthError, ConflictError, StoreError, ValidationError
from app.bikeshop.models import User

bp = Blueprint("auth", __name__)


def _redirect_with_error(endpoint: str, message: str):
    return redirect(url_for(endpoint) + "?error=" + quote(message))


def _limiter() -> LoginRateLimiter:
    return current_app.extensions["login_rate_limiter"]


def _commit_audit(s) -> None:
    """Commit audit rows; a lost audit row must not change the auth outcome."""
    try:
        commit(s)
    except StoreError:
        current_app.logger.exception("Could not record auth event (request_id=%s)", g.request_id)


def load_current_user() -> None:
    """
    Loads g.current_user from the session.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/static/", "/health", "/healthz")):
        g.current_user = None
        return

    user_id = session.get("user_id")
    if not user_id:
        g.current_user = None
        return

    try:
        s = db_session()
        user = s.get(User, int(user_id))
    except Exception as e:
        current_app.logger.error("load_current_user DB error (clearing session): %s", e)
        user = None
    if user is None:
        session.pop("user_id", None)
    g.current_user = user


# ---------- Login ----------
@bp.get("/login")
def login_get():
    if g.current_user:
        return redirect(url_for("pages.index"))
    return render_template("auth/login.html", title="Login", error=request.args.get("error"))


@bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    ip = request.remote_addr or "unknown"

    limiter = _limiter()
    if limiter.is_limited(ip):
        current_app.logger.warning("Login rate limit hit (ip=%s)", ip)
        return _redirect_with_error("auth.login_get", "Too many login attempts. Please wait 5 minutes.")
    limiter.record(ip)

    s = db_session()
    try:
        user = login(s, email, password)
    except AuthError as e:
        record_event(
            s,
            actor=None,
            action="auth.login_failed",
            entity=User,
            entity_id=email,
            reason=str(e),
            metadata={"email": email},
        )
        _commit_audit(s)
        return _redirect_with_error("auth.login_get", str(e))
    except StoreError:
        current_app.logger.exception("Login POST failed (email=%s request_id=%s)", email, g.request_id)
        return _redirect_with_error("auth.login_get", "An error occurred during login")

    limiter.clear(ip)
    record_event(s, actor=user, action="auth.login", entity=user)
    _commit_audit(s)
    return redirect(url_for("pages.index"))


# ---------- Signup ----------
@bp.get("/signup")
def signup_get():
    if g.current_user:
        return redirect(url_for("pages.index"))
    return render_template("auth/signup.html", title="Sign Up", error=request.args.get("error"))


@bp.post("/signup")
def signup_post():
    payload = {k: request.form.get(k) for k in ("name", "email", "password", "confirmPassword")}
    s = db_session()
    try:
        user = signup_user(s, payload)
        commit(s)
    except ValidationError as e:
        return _redirect_with_error("auth.signup_get", e.errors[0])
    except ConflictError as e:
        return _redirect_with_error("auth.signup_get", str(e))
    except StoreError:
        current_app.logger.exception("Signup failed (request_id=%s)", g.request_id)
        return _redirect_with_error("auth.signup_get", "An error occurred during signup")

    start_session(user)
    return redirect(url_for("pages.index"))


# ---------- Logout ----------
@bp.get("/logout")
def logout():
    user = g.current_user
    if user:
        s = db_session()
        record_event(s, actor=user, action="auth.logout", entity=user)
        _commit_audit(s)
    end_session()
    return redirect(url_for("auth.login_get"))
