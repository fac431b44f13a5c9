"""
Release step for a MedTrack deploy: migrate the schema, then make sure every
registry counter row exists.

Refuses to run in production against SQLite or without an authority principal,
mirroring the checks create_app() makes at boot. Prints the last issued id per
registry so the deploy log shows where each sequence stands.

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

from app.medtrack.config import Settings, load_settings  # noqa: E402
from app.medtrack.constants import COUNTER_DEVICE, COUNTER_SERVICE, COUNTER_TECHNICIAN  # noqa: E402
from app.medtrack.counters import last_id  # noqa: E402


def check_release_settings(settings: Settings) -> None:
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is required for a release.")
    if settings.env.lower() in ("prod", "production"):
        if settings.database_url.startswith("sqlite"):
            raise RuntimeError("Refusing to release against sqlite in production. Set DATABASE_URL to Postgres.")
        if not settings.authority_principal:
            raise RuntimeError("AUTHORITY_PRINCIPAL must be set before a production release.")


def upgrade_schema(database_url: str) -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(cfg, "head")


def run_release(settings: Settings | None = None) -> dict[str, int]:
    """Returns the last issued id of each registry after the release."""
    from scripts import init_db

    if settings is None:
        if not (os.environ.get("DATABASE_URL") or "").strip():
            raise RuntimeError("Missing required environment variable DATABASE_URL.")
        settings = load_settings()
    check_release_settings(settings)

    print(f"=== MedTrack release (ENV={settings.env}) ===", flush=True)
    upgrade_schema(settings.database_url)
    print("Schema at head.", flush=True)

    init_db.seed_only(database_url=settings.database_url)
    with init_db.session_scope(settings.database_url) as s:
        counters = {name: last_id(s, name) for name in (COUNTER_DEVICE, COUNTER_TECHNICIAN, COUNTER_SERVICE)}
    for name, value in counters.items():
        print(f"  {name}: last id {value}", flush=True)
    return counters


def main() -> None:
    run_release()


if __name__ == "__main__":
    main()
