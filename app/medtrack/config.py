import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    authority_principal: str
    ledger_clock: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///medtrack.db"),
        authority_principal=_getenv("AUTHORITY_PRINCIPAL", ""),
        ledger_clock=_getenv("LEDGER_CLOCK", "system"),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        # Single identity allowed to mutate any registry; fixed for the life of the process.
        "AUTHORITY_PRINCIPAL": s.authority_principal,
        # "system" (unix seconds) or an integer height for replays/tests
        "LEDGER_CLOCK": s.ledger_clock,
    }
