"""Tests for the device registry: hospitals, devices and device status."""
import json

import pytest
from sqlalchemy import func, select

from app.medtrack import create_app
from app.medtrack.constants import COUNTER_DEVICE
from app.medtrack.counters import last_id
from app.medtrack.db import session_scope
from app.medtrack.errors import Conflict, NotFound, Unauthorized
from app.medtrack.models import AuditEvent, Base
from app.medtrack.modules.devices.models import Device, Hospital
from app.medtrack.modules.devices.service import DeviceRegistry

OWNER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
OTHER = "ST2PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("AUTHORITY_PRINCIPAL", OWNER)
    monkeypatch.setenv("LEDGER_CLOCK", "100")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _registry(app, s) -> DeviceRegistry:
    return DeviceRegistry(s, app.extensions["access_control"])


def _register_general_hospital(app):
    with session_scope(app) as s:
        _registry(app, s).register_hospital(1, "General Hospital", "New York", "contact@hospital.com", OWNER)


def _register_mri(app, hospital_id=1, caller=OWNER) -> int:
    with session_scope(app) as s:
        return _registry(app, s).register_device(
            "MRI Scanner",
            "Model X",
            "SN12345",
            "Medical Devices Inc",
            1609459200,
            1672531200,
            hospital_id,
            caller,
        )


def _count(app, model) -> int:
    with session_scope(app) as s:
        return s.scalar(select(func.count()).select_from(model))


# ---------- Hospitals ----------
def test_register_hospital(app):
    _register_general_hospital(app)

    assert _count(app, Hospital) == 1
    with session_scope(app) as s:
        hospital = _registry(app, s).get_hospital(1)
        assert (hospital.id, hospital.name, hospital.location, hospital.contact) == (
            1,
            "General Hospital",
            "New York",
            "contact@hospital.com",
        )


def test_register_hospital_unauthorized(app):
    with pytest.raises(Unauthorized):
        with session_scope(app) as s:
            _registry(app, s).register_hospital(1, "General Hospital", "New York", "contact@hospital.com", OTHER)
    assert _count(app, Hospital) == 0


def test_register_hospital_duplicate_id_conflicts(app):
    _register_general_hospital(app)
    with pytest.raises(Conflict):
        with session_scope(app) as s:
            _registry(app, s).register_hospital(1, "Other Hospital", "Boston", "other@hospital.com", OWNER)

    with session_scope(app) as s:
        assert _registry(app, s).get_hospital(1).name == "General Hospital"


def test_unauthorized_checked_before_conflict(app):
    _register_general_hospital(app)
    with pytest.raises(Unauthorized):
        with session_scope(app) as s:
            _registry(app, s).register_hospital(1, "Other Hospital", "Boston", "other@hospital.com", OTHER)


def test_get_missing_hospital_is_none(app):
    with session_scope(app) as s:
        assert _registry(app, s).get_hospital(42) is None


# ---------- Devices ----------
def test_register_device(app):
    _register_general_hospital(app)
    device_id = _register_mri(app)

    assert device_id == 1
    assert _count(app, Device) == 1
    with session_scope(app) as s:
        assert last_id(s, COUNTER_DEVICE) == 1
        device = _registry(app, s).get_device(1)
        assert device.name == "MRI Scanner"
        assert device.model == "Model X"
        assert device.serial_number == "SN12345"
        assert device.manufacturer == "Medical Devices Inc"
        assert device.purchase_date == 1609459200
        assert device.warranty_expiry == 1672531200
        assert device.hospital_id == 1
        assert device.status == "active"


def test_register_device_missing_hospital(app):
    with pytest.raises(NotFound):
        _register_mri(app, hospital_id=999)
    assert _count(app, Device) == 0
    with session_scope(app) as s:
        assert last_id(s, COUNTER_DEVICE) == 0


def test_register_device_unauthorized(app):
    _register_general_hospital(app)
    with pytest.raises(Unauthorized):
        _register_mri(app, caller=OTHER)
    assert _count(app, Device) == 0


def test_failed_registration_does_not_consume_id(app):
    _register_general_hospital(app)
    assert _register_mri(app) == 1
    with pytest.raises(NotFound):
        _register_mri(app, hospital_id=999)
    with pytest.raises(Unauthorized):
        _register_mri(app, caller=OTHER)
    assert _register_mri(app) == 2


def test_update_device_status(app):
    _register_general_hospital(app)
    _register_mri(app)
    with session_scope(app) as s:
        _registry(app, s).update_device_status(1, "maintenance", OWNER)

    with session_scope(app) as s:
        device = _registry(app, s).get_device(1)
        assert device.status == "maintenance"
        # other attributes untouched
        assert device.serial_number == "SN12345"
        assert device.hospital_id == 1


def test_update_status_missing_device(app):
    with pytest.raises(NotFound):
        with session_scope(app) as s:
            _registry(app, s).update_device_status(7, "retired", OWNER)


def test_update_status_unauthorized_leaves_status(app):
    _register_general_hospital(app)
    _register_mri(app)
    with pytest.raises(Unauthorized):
        with session_scope(app) as s:
            _registry(app, s).update_device_status(1, "retired", OTHER)
    with session_scope(app) as s:
        assert _registry(app, s).get_device(1).status == "active"


def test_list_devices_by_hospital(app):
    _register_general_hospital(app)
    with session_scope(app) as s:
        _registry(app, s).register_hospital(2, "Mercy", "Chicago", "mercy@hospital.com", OWNER)
    _register_mri(app)
    _register_mri(app, hospital_id=2)
    _register_mri(app)

    with session_scope(app) as s:
        registry = _registry(app, s)
        assert [d.id for d in registry.list_devices()] == [1, 2, 3]
        assert [d.id for d in registry.list_devices(hospital_id=1)] == [1, 3]


def test_mutations_are_audited(app):
    _register_general_hospital(app)
    _register_mri(app)
    with session_scope(app) as s:
        events = s.scalars(select(AuditEvent).order_by(AuditEvent.id)).all()
        assert [e.action for e in events] == ["hospital.register", "device.register"]
        assert events[1].actor_identity == OWNER
        assert events[1].entity_id == "1"
        assert json.loads(events[1].metadata_json)["hospital_id"] == 1


# ---------- HTTP ----------
def _h(caller=OWNER):
    return {"X-Caller-Identity": caller}


def test_api_hospital_and_device_flow(client):
    r = client.post(
        "/api/hospitals",
        json={"hospital_id": 1, "name": "General Hospital", "location": "New York", "contact": "contact@hospital.com"},
        headers=_h(),
    )
    assert r.status_code == 201

    r = client.get("/api/hospitals/1")
    assert r.status_code == 200
    assert r.json == {"hospital_id": 1, "name": "General Hospital", "location": "New York", "contact": "contact@hospital.com"}

    r = client.post(
        "/api/devices",
        json={
            "name": "MRI Scanner",
            "model": "Model X",
            "serial_number": "SN12345",
            "manufacturer": "Medical Devices Inc",
            "purchase_date": 1609459200,
            "warranty_expiry": 1672531200,
            "hospital_id": 1,
        },
        headers=_h(),
    )
    assert r.status_code == 201
    assert r.json["device_id"] == 1

    r = client.post("/api/devices/1/status", json={"status": "maintenance"}, headers=_h())
    assert r.status_code == 200
    assert r.json["device"]["status"] == "maintenance"

    r = client.get("/api/devices?hospital_id=1")
    assert r.json["total"] == 1


def test_api_error_codes(client):
    body = {"hospital_id": 1, "name": "General Hospital", "location": "New York", "contact": "contact@hospital.com"}
    r = client.post("/api/hospitals", json=body, headers=_h(OTHER))
    assert r.status_code == 403
    assert r.json["error"] == "unauthorized"

    r = client.post("/api/hospitals", json=body)
    assert r.status_code == 403

    client.post("/api/hospitals", json=body, headers=_h())
    r = client.post("/api/hospitals", json=body, headers=_h())
    assert r.status_code == 409
    assert r.json["error"] == "conflict"

    r = client.get("/api/devices/5")
    assert r.status_code == 404
    assert r.json["error"] == "not_found"


def test_api_rejects_bad_payload(client):
    r = client.post("/api/hospitals", json={"hospital_id": 0, "name": ""}, headers=_h())
    assert r.status_code == 400
    assert r.json["error"] == "invalid_payload"
    assert "hospital_id must be a positive integer." in r.json["messages"]

    r = client.post("/api/hospitals", data="not json", headers=_h())
    assert r.status_code == 400


@pytest.mark.parametrize(
    "path, body",
    [
        ("/api/hospitals", {"hospital_id": "abc"}),
        ("/api/devices", {"name": 5, "hospital_id": 0}),
        ("/api/devices/1/status", {"status": 7}),
    ],
)
def test_api_unauthorized_caller_rejected_before_payload_checks(client, path, body):
    r = client.post(path, json=body, headers=_h(OTHER))
    assert r.status_code == 403
    assert r.json["error"] == "unauthorized"

    r = client.post(path, data="not json", headers={"X-Caller-Identity": "intruder"})
    assert r.status_code == 403


def test_api_device_status_accepts_any_string(client):
    client.post(
        "/api/hospitals",
        json={"hospital_id": 1, "name": "General Hospital", "location": "New York", "contact": "contact@hospital.com"},
        headers=_h(),
    )
    client.post(
        "/api/devices",
        json={
            "name": "MRI Scanner",
            "model": "Model X",
            "serial_number": "SN12345",
            "manufacturer": "Medical Devices Inc",
            "purchase_date": 1609459200,
            "warranty_expiry": 1672531200,
            "hospital_id": 1,
        },
        headers=_h(),
    )

    r = client.post("/api/devices/1/status", json={"status": ""}, headers=_h())
    assert r.status_code == 200
    assert r.json["device"]["status"] == ""

    r = client.post("/api/devices/1/status", json={"status": "  under repair "}, headers=_h())
    assert r.json["device"]["status"] == "  under repair "
    assert client.get("/api/devices/1").json["status"] == "  under repair "
