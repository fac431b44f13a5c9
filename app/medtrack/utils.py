from __future__ import annotations

from typing import Any

from flask import current_app, request
from werkzeug.exceptions import BadRequest

from app.medtrack.clock import FixedClock, LedgerClock
from app.medtrack.constants import LEDGER_HEIGHT_HEADER


class PayloadError(BadRequest):
    """Malformed request body; raised before any registry code runs."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


def json_payload() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise PayloadError(["Request body must be a JSON object."])
    return payload


def require_str(payload: dict, key: str, errors: list[str], *, max_length: int = 255) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        errors.append(f"{key} is required.")
        return ""
    value = value.strip()
    if len(value) > max_length:
        errors.append(f"{key} must be at most {max_length} characters.")
    return value


def require_any_str(payload: dict, key: str, errors: list[str]) -> str:
    """Any JSON string, empty included, passed through verbatim."""
    value = payload.get(key)
    if not isinstance(value, str):
        errors.append(f"{key} must be a string.")
        return ""
    return value


def optional_str(payload: dict, key: str, errors: list[str]) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        errors.append(f"{key} must be a string.")
        return ""
    return value.strip()


def require_int(payload: dict, key: str, errors: list[str], *, positive: bool = False) -> int:
    value: Any = payload.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"{key} must be an integer.")
        return 0
    if positive and value < 1:
        errors.append(f"{key} must be a positive integer.")
    elif value < 0:
        errors.append(f"{key} must not be negative.")
    return value


def require_str_list(payload: dict, key: str, errors: list[str]) -> list[str]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        errors.append(f"{key} must be a list of strings.")
        return []
    return list(value)


def raise_for_errors(errors: list[str]) -> None:
    if errors:
        raise PayloadError(errors)


def request_clock() -> LedgerClock:
    """Configured ledger clock, unless the host pinned a height for this request."""
    raw = (request.headers.get(LEDGER_HEIGHT_HEADER) or "").strip()
    if raw:
        try:
            return FixedClock(value=int(raw))
        except ValueError:
            raise PayloadError([f"{LEDGER_HEIGHT_HEADER} must be an integer."])
    return current_app.extensions["ledger_clock"]
