from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import g, redirect, url_for

from app.bikeshop.models import User


def current_user() -> User | None:
    return getattr(g, "current_user", None)


def require_session(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Redirect to the login page unless the request carries a logged-in session (any method)."""

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if current_user() is None:
            return redirect(url_for("auth.login_get"))
        return fn(*args, **kwargs)

    return wrapped
