import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    port: int
    log_level: str

    session_backend: str
    session_lifetime_hours: int
    session_cookie_secure: bool

    login_rate_limit: int
    login_rate_window: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getint(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///bikeshop.db"),
        port=_getint("PORT", 3002),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        session_backend=_getenv("SESSION_BACKEND", "db").lower(),
        session_lifetime_hours=_getint("SESSION_LIFETIME_HOURS", 24),
        session_cookie_secure=_getenv("SESSION_COOKIE_SECURE", "0") == "1",
        login_rate_limit=_getint("LOGIN_RATE_LIMIT", 5),
        login_rate_window=_getint("LOGIN_RATE_WINDOW", 300),
    )


def load_config() -> dict:
    s = load_settings()
    if s.session_backend not in ("db", "cookie"):
        raise RuntimeError(f"SESSION_BACKEND must be 'db' or 'cookie' (got {s.session_backend!r}).")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "PORT": s.port,
        "LOG_LEVEL": s.log_level,
        "SESSION_BACKEND": s.session_backend,
        "SESSION_LIFETIME_HOURS": s.session_lifetime_hours,
        "LOGIN_RATE_LIMIT": s.login_rate_limit,
        "LOGIN_RATE_WINDOW": s.login_rate_window,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": s.session_cookie_secure,
        # form posts only; nothing here accepts uploads
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
