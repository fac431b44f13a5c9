from flask import Blueprint

from app.medtrack.access import access_control

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True, "authority_configured": bool(access_control().authority)}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for k8s probes. No DB access, minimal overhead.
    """
    return "ok", 200
