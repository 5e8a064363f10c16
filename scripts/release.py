"""
Apply Alembic migrations to DATABASE_URL.

Usage:
  python scripts/release.py
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.regdesk.config import is_production, load_settings  # noqa: E402


def alembic_config(db_url: str):
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def run_release() -> None:
    if not (os.environ.get("DATABASE_URL") or "").strip():
        raise RuntimeError("Missing required environment variable DATABASE_URL.")
    settings = load_settings()
    if is_production(settings.env) and settings.database_url.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")

    from alembic import command

    print(f"Migrating registrations schema (ENV={settings.env})", flush=True)
    command.upgrade(alembic_config(settings.database_url), "head")
    print("Migrations complete.", flush=True)


if __name__ == "__main__":
    run_release()
