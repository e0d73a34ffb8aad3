"""
Delete expired server-side sessions.

Run from cron; safe to run at any time.

Usage:
  python scripts/purge_sessions.py
"""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.bikeshop.sessions import purge_expired_sessions  # noqa: E402
from scripts._db_utils import database_url, script_session  # noqa: E402


def main() -> None:
    with script_session(database_url()) as s:
        removed = purge_expired_sessions(s)
    print(f"Removed {removed} expired session(s).", flush=True)


if __name__ == "__main__":
    main()
