#!/usr/bin/env python3
"""
Migrate, then exec gunicorn on app.wsgi:app.

Usage:
    PORT=8080 python scripts/start.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

DEFAULT_PORT = 8080


def resolve_port(raw: str | None) -> int:
    port = (raw or "").strip()
    if not port:
        return DEFAULT_PORT
    if not port.isdigit() or not 1 <= int(port) <= 65535:
        raise ValueError(f"Invalid PORT value '{port}'. Must be integer 1-65535.")
    return int(port)


def gunicorn_argv(port: int) -> list[str]:
    # One worker: the request and login limiters are per-process.
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", "1",
        "--threads", "4",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    try:
        port = resolve_port(os.environ.get("PORT"))
    except ValueError as e:
        sys.exit(f"ERROR: {e}")

    from scripts.release import run_release

    run_release()
    os.execvp("gunicorn", gunicorn_argv(port))


if __name__ == "__main__":
    main()
