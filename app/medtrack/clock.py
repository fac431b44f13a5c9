from __future__ import annotations

import time
from dataclasses import dataclass


class LedgerClock:
    """Read-only logical clock supplied by the host; used to timestamp completed services."""

    def height(self) -> int:
        raise NotImplementedError


class SystemClock(LedgerClock):
    def height(self) -> int:
        return int(time.time())


@dataclass(frozen=True)
class FixedClock(LedgerClock):
    value: int

    def height(self) -> int:
        return self.value


def clock_from_config(config: dict) -> LedgerClock:
    raw = str(config.get("LEDGER_CLOCK") or "system").strip().lower()
    if raw == "system":
        return SystemClock()
    try:
        return FixedClock(value=int(raw))
    except ValueError as e:
        raise RuntimeError(f"LEDGER_CLOCK must be 'system' or an integer height, got {raw!r}") from e
