from __future__ import annotations

import uuid

from flask import g, request

from app.medtrack.constants import CALLER_HEADER


def load_current_caller() -> None:
    """
    Loads g.caller_identity from the header set by the host after it has authenticated
    the request. Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = (request.headers.get("X-Request-Id") or "").strip() or uuid.uuid4().hex
    if request.path.startswith(("/static/", "/health", "/healthz")):
        g.caller_identity = None
        return
    g.caller_identity = (request.headers.get(CALLER_HEADER) or "").strip() or None


def current_caller() -> str | None:
    return getattr(g, "caller_identity", None)
