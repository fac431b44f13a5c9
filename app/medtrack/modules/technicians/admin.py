from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.medtrack.access import access_control, require_authority
from app.medtrack.auth import current_caller
from app.medtrack.db import db_session, ledger_transaction
from app.medtrack.errors import NotFound
from app.medtrack.utils import PayloadError, json_payload, raise_for_errors, require_any_str, require_int, require_str

from .models import Qualification, Technician
from .service import TechnicianRegistry

bp = Blueprint("technicians", __name__)


def _registry(s=None) -> TechnicianRegistry:
    return TechnicianRegistry(s if s is not None else db_session(), access_control())


def technician_json(t: Technician) -> dict:
    return {
        "technician_id": t.id,
        "name": t.name,
        "contact": t.contact,
        "certification_date": t.certification_date,
        "certification_expiry": t.certification_expiry,
        "status": t.status,
    }


def qualification_json(q: Qualification) -> dict:
    return {
        "technician_id": q.technician_id,
        "device_type": q.device_type,
        "certification_level": q.certification_level,
        "verified": q.verified,
    }


@bp.post("/technicians")
@require_authority("technician.register")
def technician_register():
    payload = json_payload()
    errors: list[str] = []
    name = require_str(payload, "name", errors)
    contact = require_str(payload, "contact", errors)
    certification_date = require_int(payload, "certification_date", errors)
    certification_expiry = require_int(payload, "certification_expiry", errors)
    raise_for_errors(errors)

    with ledger_transaction() as s:
        technician_id = _registry(s).register_technician(
            name, contact, certification_date, certification_expiry, current_caller()
        )
    return jsonify({"ok": True, "technician_id": technician_id}), 201


@bp.get("/technicians/<int:technician_id>")
def technician_detail(technician_id: int):
    technician = _registry().get_technician(technician_id)
    if technician is None:
        raise NotFound(f"Technician {technician_id} not found.")
    return jsonify(technician_json(technician))


@bp.post("/technicians/<int:technician_id>/status")
@require_authority("technician.status_change")
def technician_status(technician_id: int):
    payload = json_payload()
    errors: list[str] = []
    status = require_any_str(payload, "status", errors)
    raise_for_errors(errors)

    with ledger_transaction() as s:
        technician = _registry(s).update_technician_status(technician_id, status, current_caller())
    return jsonify({"ok": True, "technician": technician_json(technician)})


# ---------- Qualifications ----------
# Device types contain spaces ("MRI Scanner"), so they travel in the body/query, not the path.
@bp.post("/technicians/<int:technician_id>/qualifications")
@require_authority("technician.qualification_add")
def qualification_add(technician_id: int):
    payload = json_payload()
    errors: list[str] = []
    device_type = require_any_str(payload, "device_type", errors)
    certification_level = require_str(payload, "certification_level", errors, max_length=64)
    raise_for_errors(errors)

    with ledger_transaction() as s:
        qualification = _registry(s).add_qualification(technician_id, device_type, certification_level, current_caller())
    return jsonify({"ok": True, "qualification": qualification_json(qualification)}), 201


@bp.post("/technicians/<int:technician_id>/qualifications/verify")
@require_authority("technician.qualification_verify")
def qualification_verify(technician_id: int):
    payload = json_payload()
    errors: list[str] = []
    device_type = require_any_str(payload, "device_type", errors)
    raise_for_errors(errors)

    with ledger_transaction() as s:
        qualification = _registry(s).verify_qualification(technician_id, device_type, current_caller())
    return jsonify({"ok": True, "qualification": qualification_json(qualification)})


@bp.get("/technicians/<int:technician_id>/qualifications")
def qualification_list(technician_id: int):
    registry = _registry()
    device_type = request.args.get("device_type")
    if device_type is not None:
        qualification = registry.get_qualification(technician_id, device_type)
        if qualification is None:
            raise NotFound(f"Qualification for technician {technician_id} on {device_type!r} not found.")
        return jsonify(qualification_json(qualification))
    qualifications = registry.list_qualifications(technician_id)
    return jsonify({"qualifications": [qualification_json(q) for q in qualifications]})


@bp.get("/technicians/<int:technician_id>/qualified")
def technician_qualified(technician_id: int):
    device_type = request.args.get("device_type")
    if device_type is None:
        raise PayloadError(["device_type query parameter is required."])
    qualified = _registry().is_qualified(technician_id, device_type)
    return jsonify({"technician_id": technician_id, "device_type": device_type, "qualified": qualified})
