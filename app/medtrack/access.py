from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable

from flask import Flask, current_app

from app.medtrack.auth import current_caller
from app.medtrack.errors import Unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessControl:
    """
    Single-authority gate applied to every mutating registry call.
    The authority is set once at construction and compared by value.
    """

    authority: str

    def is_authorized(self, caller: str | None) -> bool:
        if not caller or not self.authority:
            return False
        return caller == self.authority

    def ensure_authorized(self, caller: str | None, action: str) -> None:
        if not self.is_authorized(caller):
            logger.warning("Rejected %s: caller=%r is not the authority", action, caller)
            raise Unauthorized(f"Caller is not permitted to perform {action}.")


def init_access_control(app: Flask) -> None:
    app.extensions["access_control"] = AccessControl(authority=app.config.get("AUTHORITY_PRINCIPAL") or "")


def access_control() -> AccessControl:
    return current_app.extensions["access_control"]


def require_authority(action: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Rejects non-authority callers before the view parses or validates its body."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            access_control().ensure_authorized(current_caller(), action)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
