"""
Release phase, run before each deploy starts serving.

1. Refuse a SQLite database in production.
2. Upgrade the schema to the latest alembic revision.
3. Seed the initial account (idempotent; never overwrites a password).
4. Drop expired server-side sessions.

Usage:
  python scripts/release.py
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from dotenv import load_dotenv  # noqa: E402

from app.bikeshop.config import Settings, load_settings  # noqa: E402
from app.bikeshop.sessions import purge_expired_sessions  # noqa: E402
from scripts import init_db  # noqa: E402
from scripts._db_utils import script_session  # noqa: E402


def check_database(settings: Settings) -> str:
    db_url = settings.database_url
    if settings.env.lower() in ("prod", "production") and db_url.startswith("sqlite"):
        raise RuntimeError("Refusing to release onto a SQLite database in production. Set DATABASE_URL to Postgres.")
    return db_url


def migrate(db_url: str) -> None:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, "head")


def run_release() -> None:
    load_dotenv()
    settings = load_settings()
    db_url = check_database(settings)
    print(f"=== Bikeshop release (ENV={settings.env}) ===", flush=True)

    migrate(db_url)
    print("Migrations complete.", flush=True)

    init_db.seed_only(database_url_override=db_url)

    with script_session(db_url) as s:
        removed = purge_expired_sessions(s)
    print(f"Removed {removed} expired session(s).", flush=True)
    print("=== Bikeshop release done ===", flush=True)


if __name__ == "__main__":
    run_release()
