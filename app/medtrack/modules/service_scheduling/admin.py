from __future__ import annotations

from flask import Blueprint, jsonify

from app.medtrack.access import access_control, require_authority
from app.medtrack.auth import current_caller
from app.medtrack.db import db_session, ledger_transaction
from app.medtrack.errors import NotFound
from app.medtrack.modules.devices.service import DeviceRegistry
from app.medtrack.modules.technicians.service import TechnicianRegistry
from app.medtrack.utils import (
    json_payload,
    optional_str,
    raise_for_errors,
    request_clock,
    require_any_str,
    require_int,
    require_str,
    require_str_list,
)

from .models import ServiceHistoryEntry, ServiceOrder
from .service import ServiceScheduler

bp = Blueprint("service_scheduling", __name__)


def _scheduler(s=None) -> ServiceScheduler:
    s = s if s is not None else db_session()
    access = access_control()
    return ServiceScheduler(
        s,
        access,
        devices=DeviceRegistry(s, access),
        technicians=TechnicianRegistry(s, access),
        clock=request_clock(),
    )


def service_json(o: ServiceOrder) -> dict:
    return {
        "service_id": o.id,
        "device_id": o.device_id,
        "technician_id": o.technician_id,
        "scheduled_date": o.scheduled_date,
        "service_type": o.service_type,
        "notes": o.notes,
        "status": o.status,
    }


def history_json(h: ServiceHistoryEntry) -> dict:
    return {
        "device_id": h.device_id,
        "service_id": h.service_id,
        "completion_date": h.completion_date,
        "findings": h.findings,
        "parts_replaced": list(h.parts_replaced or []),
        "next_service_date": h.next_service_date,
    }


@bp.post("/services")
@require_authority("service.schedule")
def service_schedule():
    payload = json_payload()
    errors: list[str] = []
    device_id = require_int(payload, "device_id", errors)
    technician_id = require_int(payload, "technician_id", errors)
    scheduled_date = require_int(payload, "scheduled_date", errors)
    service_type = require_str(payload, "service_type", errors, max_length=128)
    notes = optional_str(payload, "notes", errors)
    raise_for_errors(errors)

    with ledger_transaction() as s:
        service_id = _scheduler(s).schedule_service(
            device_id, technician_id, scheduled_date, service_type, notes, current_caller()
        )
    return jsonify({"ok": True, "service_id": service_id}), 201


@bp.get("/services/<int:service_id>")
def service_detail(service_id: int):
    order = _scheduler().get_service(service_id)
    if order is None:
        raise NotFound(f"Service {service_id} not found.")
    return jsonify(service_json(order))


@bp.post("/services/<int:service_id>/status")
@require_authority("service.status_change")
def service_status(service_id: int):
    payload = json_payload()
    errors: list[str] = []
    status = require_any_str(payload, "status", errors)
    raise_for_errors(errors)

    with ledger_transaction() as s:
        order = _scheduler(s).update_service_status(service_id, status, current_caller())
    return jsonify({"ok": True, "service": service_json(order)})


@bp.post("/services/<int:service_id>/complete")
@require_authority("service.complete")
def service_complete(service_id: int):
    payload = json_payload()
    errors: list[str] = []
    findings = optional_str(payload, "findings", errors)
    parts_replaced = require_str_list(payload, "parts_replaced", errors)
    next_service_date = require_int(payload, "next_service_date", errors)
    raise_for_errors(errors)

    with ledger_transaction() as s:
        entry = _scheduler(s).complete_service(service_id, findings, parts_replaced, next_service_date, current_caller())
    return jsonify({"ok": True, "history": history_json(entry)})


@bp.get("/devices/<int:device_id>/history")
def service_history_list(device_id: int):
    entries = _scheduler().list_service_history(device_id)
    return jsonify({"history": [history_json(h) for h in entries]})


@bp.get("/devices/<int:device_id>/history/<int:service_id>")
def service_history_detail(device_id: int, service_id: int):
    entry = _scheduler().get_service_history(device_id, service_id)
    if entry is None:
        raise NotFound(f"No history for device {device_id} service {service_id}.")
    return jsonify(history_json(entry))
