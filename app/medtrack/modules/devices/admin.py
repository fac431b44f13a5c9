from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.medtrack.access import access_control, require_authority
from app.medtrack.auth import current_caller
from app.medtrack.db import db_session, ledger_transaction
from app.medtrack.errors import NotFound
from app.medtrack.utils import json_payload, raise_for_errors, require_any_str, require_int, require_str

from .models import Device, Hospital
from .service import DeviceRegistry

bp = Blueprint("devices", __name__)


def _registry(s=None) -> DeviceRegistry:
    return DeviceRegistry(s if s is not None else db_session(), access_control())


def hospital_json(h: Hospital) -> dict:
    return {"hospital_id": h.id, "name": h.name, "location": h.location, "contact": h.contact}


def device_json(d: Device) -> dict:
    return {
        "device_id": d.id,
        "name": d.name,
        "model": d.model,
        "serial_number": d.serial_number,
        "manufacturer": d.manufacturer,
        "purchase_date": d.purchase_date,
        "warranty_expiry": d.warranty_expiry,
        "hospital_id": d.hospital_id,
        "status": d.status,
    }


# ---------- Hospitals ----------
@bp.post("/hospitals")
@require_authority("hospital.register")
def hospital_register():
    payload = json_payload()
    errors: list[str] = []
    hospital_id = require_int(payload, "hospital_id", errors, positive=True)
    name = require_str(payload, "name", errors)
    location = require_str(payload, "location", errors)
    contact = require_str(payload, "contact", errors)
    raise_for_errors(errors)

    with ledger_transaction() as s:
        hospital = _registry(s).register_hospital(hospital_id, name, location, contact, current_caller())
    return jsonify({"ok": True, "hospital": hospital_json(hospital)}), 201


@bp.get("/hospitals/<int:hospital_id>")
def hospital_detail(hospital_id: int):
    hospital = _registry().get_hospital(hospital_id)
    if hospital is None:
        raise NotFound(f"Hospital {hospital_id} not found.")
    return jsonify(hospital_json(hospital))


# ---------- Devices ----------
@bp.post("/devices")
@require_authority("device.register")
def device_register():
    payload = json_payload()
    errors: list[str] = []
    name = require_str(payload, "name", errors)
    model = require_str(payload, "model", errors)
    serial_number = require_str(payload, "serial_number", errors, max_length=128)
    manufacturer = require_str(payload, "manufacturer", errors)
    purchase_date = require_int(payload, "purchase_date", errors)
    warranty_expiry = require_int(payload, "warranty_expiry", errors)
    hospital_id = require_int(payload, "hospital_id", errors, positive=True)
    raise_for_errors(errors)

    with ledger_transaction() as s:
        device_id = _registry(s).register_device(
            name,
            model,
            serial_number,
            manufacturer,
            purchase_date,
            warranty_expiry,
            hospital_id,
            current_caller(),
        )
    return jsonify({"ok": True, "device_id": device_id}), 201


@bp.get("/devices")
def device_list():
    hospital_id = request.args.get("hospital_id", type=int)
    devices = _registry().list_devices(hospital_id=hospital_id)
    return jsonify({"devices": [device_json(d) for d in devices], "total": len(devices)})


@bp.get("/devices/<int:device_id>")
def device_detail(device_id: int):
    device = _registry().get_device(device_id)
    if device is None:
        raise NotFound(f"Device {device_id} not found.")
    return jsonify(device_json(device))


@bp.post("/devices/<int:device_id>/status")
@require_authority("device.status_change")
def device_status(device_id: int):
    payload = json_payload()
    errors: list[str] = []
    status = require_any_str(payload, "status", errors)
    raise_for_errors(errors)

    with ledger_transaction() as s:
        device = _registry(s).update_device_status(device_id, status, current_caller())
    return jsonify({"ok": True, "device": device_json(device)})
