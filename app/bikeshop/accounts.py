from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from flask import session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from app.bikeshop.audit import record_event
from app.bikeshop.errors import AuthError, ConflictError, StoreError, ValidationError
from app.bikeshop.models import User
from app.bikeshop.security import reissue_csrf_token
from app.bikeshop.sessions import rotate_session
from app.bikeshop.utils import missing_fields, text_value

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


MIN_PASSWORD_LENGTH = 8

INCORRECT_EMAIL = "Incorrect email."
INCORRECT_PASSWORD = "Incorrect password."


def normalize_email(raw: object) -> str:
    return text_value(raw).lower()


def find_user_by_email(s: "Session", email: str) -> User | None:
    try:
        return s.query(User).filter(User.email == normalize_email(email)).one_or_none()
    except SQLAlchemyError as e:
        s.rollback()
        raise StoreError(str(e)) from e


def validate_signup_payload(payload: dict) -> list[str]:
    """Validate signup form. Returns list of errors."""
    errors = missing_fields(payload, {"name": "Name", "email": "Email", "password": "Password"})
    password = str(payload.get("password") or "")
    if password and len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if password != str(payload.get("confirmPassword") or ""):
        errors.append("Passwords do not match")
    return errors


def signup_user(s: "Session", payload: dict) -> User:
    """
    Create a user from a signup form.

    Raises ValidationError for bad input and ConflictError when the email is
    taken, including when a concurrent signup wins the race to the unique index.
    """
    errors = validate_signup_payload(payload)
    if errors:
        raise ValidationError(errors)

    email = normalize_email(payload.get("email"))
    if find_user_by_email(s, email) is not None:
        raise ConflictError("Email already in use")

    user = User(
        name=text_value(payload.get("name")),
        email=email,
        password_hash=generate_password_hash(str(payload["password"])),
    )
    s.add(user)
    try:
        s.flush()
    except IntegrityError as e:
        s.rollback()
        raise ConflictError("Email already in use") from e
    except SQLAlchemyError as e:
        s.rollback()
        raise StoreError(str(e)) from e

    record_event(s, actor=user, action="auth.signup", entity=user)
    return user


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a credential check: the user on success, the reason otherwise."""

    user: User | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.user is not None


def authenticate(s: "Session", email: str, password: str) -> AuthResult:
    user = find_user_by_email(s, email)
    if user is None:
        return AuthResult(reason=INCORRECT_EMAIL)
    if not check_password_hash(user.password_hash, password or ""):
        return AuthResult(reason=INCORRECT_PASSWORD)
    return AuthResult(user=user)


def login(s: "Session", email: str, password: str) -> User:
    """Check credentials and bind the user to the current session. Raises AuthError."""
    result = authenticate(s, email, password)
    if not result.ok:
        raise AuthError(result.reason)
    start_session(result.user)
    return result.user


def start_session(user: User) -> None:
    rotate_session(session)
    session["user_id"] = user.id
    session.permanent = True
    reissue_csrf_token()


def end_session() -> None:
    """Forget the session identity. Safe to call when nobody is logged in."""
    session.clear()


class LoginRateLimiter:
    """Per-client login attempt window. One instance per app, kept in app.extensions."""

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)
        self._attempts: dict[str, list[datetime]] = {}

    def is_limited(self, key: str) -> bool:
        cutoff = datetime.utcnow() - self.window
        recent = [t for t in self._attempts.get(key, ()) if t > cutoff]
        if not recent:
            self._attempts.pop(key, None)
            return False
        self._attempts[key] = recent
        return len(recent) >= self.limit

    def record(self, key: str) -> None:
        now = datetime.utcnow()
        cutoff = now - self.window
        # Forget clients whose newest attempt has left the window.
        for stale in [k for k, times in self._attempts.items() if times[-1] <= cutoff]:
            del self._attempts[stale]
        self._attempts.setdefault(key, []).append(now)

    def clear(self, key: str) -> None:
        self._attempts.pop(key, None)
