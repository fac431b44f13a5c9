"""
Local/dev database bootstrap.

Creates any missing tables and seeds the per-registry id counters (idempotent).
Production schemas come from Alembic (scripts/release.py); this never drops or
rewrites existing rows, so running it twice is harmless.

Usage:
  python scripts/init_db.py
"""
import os
import sys
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.medtrack.constants import COUNTER_DEVICE, COUNTER_SERVICE, COUNTER_TECHNICIAN  # noqa: E402
from app.medtrack.models import Base, RegistryCounter  # noqa: E402


def _database_url(database_url: str | None) -> str:
    return (database_url or os.environ.get("DATABASE_URL") or "sqlite:///medtrack.db").strip()


@contextmanager
def session_scope(database_url: str):
    engine = create_engine(database_url, future=True, pool_pre_ping=True)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()


def seed_only(*, database_url: str | None = None) -> None:
    """
    Ensure every registry counter row exists. Existing counters are left untouched
    so ids are never reissued.
    """
    with session_scope(_database_url(database_url)) as s:
        for name in (COUNTER_DEVICE, COUNTER_TECHNICIAN, COUNTER_SERVICE):
            if s.get(RegistryCounter, name) is None:
                s.add(RegistryCounter(name=name, last_id=0))


def init_db(*, database_url: str | None = None) -> None:
    db_url = _database_url(database_url)
    engine = create_engine(db_url, future=True)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()
    seed_only(database_url=db_url)


def main() -> None:
    init_db()
    print("Database initialized.", flush=True)


if __name__ == "__main__":
    main()
