import logging

from dotenv import load_dotenv
from flask import Flask, g, jsonify

# Registers every table on Base.metadata before any module imports its own models.
from app.medtrack import models  # noqa: F401
from app.medtrack.access import init_access_control
from app.medtrack.auth import load_current_caller
from app.medtrack.clock import clock_from_config
from app.medtrack.config import load_config
from app.medtrack.db import init_db, teardown_db_session
from app.medtrack.errors import RegistryError
from app.medtrack.routes import bp as routes_bp
from app.medtrack.utils import PayloadError
from app.medtrack.modules.devices.admin import bp as devices_bp
from app.medtrack.modules.technicians.admin import bp as technicians_bp
from app.medtrack.modules.service_scheduling.admin import bp as service_scheduling_bp

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if not app.config.get("AUTHORITY_PRINCIPAL"):
            raise RuntimeError("AUTHORITY_PRINCIPAL must be set in production.")
    elif not app.config.get("AUTHORITY_PRINCIPAL"):
        app.logger.warning("AUTHORITY_PRINCIPAL is not set; every mutating call will be rejected.")

    init_db(app)
    init_access_control(app)
    app.extensions["ledger_clock"] = clock_from_config(app.config)

    app.register_blueprint(routes_bp)
    app.register_blueprint(devices_bp, url_prefix="/api")
    app.register_blueprint(technicians_bp, url_prefix="/api")
    app.register_blueprint(service_scheduling_bp, url_prefix="/api")

    app.before_request(load_current_caller)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(RegistryError)
    def _registry_error(e: RegistryError):
        app.logger.info(
            "%s %s (request_id=%s): %s",
            e.status_code,
            e.code,
            getattr(g, "request_id", None),
            e.message,
        )
        return jsonify({"error": e.code, "message": e.message}), e.status_code

    @app.errorhandler(PayloadError)
    def _payload_error(e: PayloadError):
        return jsonify({"error": "invalid_payload", "messages": e.errors}), 400

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return jsonify({"error": "not_found", "message": "No such endpoint."}), 404

    @app.errorhandler(405)
    def _err_405(e):  # type: ignore[no-redef]
        return jsonify({"error": "method_not_allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "internal_error"}), 500

    logger.info("create_app() complete; app ready to serve")

    return app
