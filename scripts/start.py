#!/usr/bin/env python3
"""
Production entry point: run the release phase, then exec gunicorn on PORT
(3002 when unset) with the app's LOG_LEVEL.

Usage:
    python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv  # noqa: E402

from app.bikeshop.config import Settings, load_settings  # noqa: E402


def gunicorn_argv(settings: Settings) -> list[str]:
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{settings.port}",
        "--workers", "2",
        "--timeout", "60",
        "--preload",
        "--log-level", settings.log_level.lower(),
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    load_dotenv()
    try:
        settings = load_settings()
    except RuntimeError as e:
        print(f"ERROR: {e}", flush=True)
        sys.exit(1)
    if not 1 <= settings.port <= 65535:
        print(f"ERROR: PORT must be 1-65535 (got {settings.port}).", flush=True)
        sys.exit(1)

    from scripts.release import run_release

    try:
        run_release()
    except Exception as e:
        print(f"Release failed: {e}", flush=True)
        sys.exit(1)

    print(f"=== Starting gunicorn on 0.0.0.0:{settings.port} ===", flush=True)
    # exec so gunicorn receives signals directly
    os.execvp("gunicorn", gunicorn_argv(settings))


if __name__ == "__main__":
    main()
