"""Database access for the maintenance scripts, resolved the same way the app resolves it."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.bikeshop.config import load_settings


def database_url(override: str | None = None) -> str:
    """The override, else DATABASE_URL (sqlite:///bikeshop.db when unset)."""
    return (override or load_settings().database_url).strip()


@contextmanager
def script_engine(db_url: str) -> Iterator[Engine]:
    engine = create_engine(db_url, future=True, pool_pre_ping=True)
    try:
        yield engine
    finally:
        engine.dispose()


@contextmanager
def script_session(db_url: str) -> Iterator[Session]:
    """One transaction per script step: committed on success, rolled back on error."""
    with script_engine(db_url) as engine, Session(engine, expire_on_commit=False) as s, s.begin():
        yield s
