"""
Create tables (development) and seed an initial account.

Usage:
  python scripts/init_db.py            # create_all + seed
  python scripts/init_db.py --seed-only

Production schemas are managed by alembic (scripts/release.py); create_all is
only for local SQLite databases.
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.bikeshop.models import Base, User  # noqa: E402
from scripts._db_utils import database_url, script_engine, script_session  # noqa: E402


def create_tables(db_url: str) -> None:
    with script_engine(db_url) as engine:
        Base.metadata.create_all(bind=engine)


def seed_only(*, database_url_override: str | None = None) -> None:
    """
    Create the initial account if ADMIN_EMAIL is not registered yet.
    Never overwrites an existing user's password.
    """
    email = (os.environ.get("ADMIN_EMAIL") or "admin@bikeshop.local").strip().lower()
    password = os.environ.get("ADMIN_PASSWORD") or "change-me-now"
    name = (os.environ.get("ADMIN_NAME") or "Administrator").strip()

    with script_session(database_url(database_url_override)) as s:
        if s.query(User).filter(User.email == email).one_or_none():
            print(f"User {email} already exists; leaving it untouched.", flush=True)
            return
        s.add(User(name=name, email=email, password_hash=generate_password_hash(password)))
        print(f"Created user {email}.", flush=True)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--seed-only", action="store_true", help="skip create_all")
    args = parser.parse_args()

    db_url = database_url()
    if not args.seed_only:
        create_tables(db_url)
        print("Tables created.", flush=True)
    seed_only(database_url_override=db_url)


if __name__ == "__main__":
    main()
