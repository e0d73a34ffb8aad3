"""
CSRF protection for logged-in form posts.

The token lives in the session. It is issued at login and whenever a page
renders a form, so a visitor who never sees a form leaves no session behind.
"""
import secrets

from flask import Request, current_app, g, render_template, request, session

CSRF_SESSION_KEY = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"

_UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
# Login and signup run before there is a session identity to forge.
_EXEMPT_BLUEPRINTS = frozenset({"auth"})


def ensure_csrf_token() -> str:
    """Return the session's CSRF token, issuing one if needed."""
    token = session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_urlsafe(32)
        session[CSRF_SESSION_KEY] = token
        session.permanent = True
    return token


def reissue_csrf_token() -> str:
    session.pop(CSRF_SESSION_KEY, None)
    return ensure_csrf_token()


def submitted_token(req: Request) -> str | None:
    token = req.headers.get(CSRF_HEADER) or req.form.get(CSRF_SESSION_KEY)
    if not token and req.is_json:
        data = req.get_json(silent=True)
        if isinstance(data, dict):
            token = data.get(CSRF_SESSION_KEY)
    return token


def validate_csrf(req: Request) -> bool:
    token = submitted_token(req)
    expected = session.get(CSRF_SESSION_KEY)
    return bool(token and expected and secrets.compare_digest(str(token), str(expected)))


def csrf_protect():
    """before_request hook: turn away state-changing requests from logged-in users without a matching token."""
    if request.method not in _UNSAFE_METHODS or request.blueprint in _EXEMPT_BLUEPRINTS:
        return None
    # Anonymous requests are redirected by the session gate instead.
    if getattr(g, "current_user", None) is None:
        return None
    if validate_csrf(request):
        return None
    current_app.logger.warning("CSRF check failed (path=%s request_id=%s)", request.path, g.request_id)
    return render_template("errors/400.html", title="Bad Request", message="CSRF token missing or invalid."), 400
