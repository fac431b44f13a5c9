"""
Device registry service layer.
Hospitals (caller-chosen ids) and the devices installed at them.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.medtrack.access import AccessControl
from app.medtrack.audit import record_event
from app.medtrack.constants import COUNTER_DEVICE, DEVICE_STATUS_ACTIVE
from app.medtrack.counters import next_id
from app.medtrack.errors import Conflict, NotFound

from .models import Device, Hospital

logger = logging.getLogger(__name__)


class DeviceRegistry:
    def __init__(self, s: Session, access: AccessControl) -> None:
        self.s = s
        self.access = access

    # ---------- Hospitals ----------
    def register_hospital(self, hospital_id: int, name: str, location: str, contact: str, caller: str | None) -> Hospital:
        self.access.ensure_authorized(caller, "hospital.register")
        if self.s.get(Hospital, hospital_id) is not None:
            raise Conflict(f"Hospital {hospital_id} is already registered.")

        hospital = Hospital(id=hospital_id, name=name, location=location, contact=contact)
        self.s.add(hospital)
        self.s.flush()

        record_event(
            self.s,
            actor=caller,
            action="hospital.register",
            entity_type="Hospital",
            entity_id=str(hospital.id),
            metadata={"name": name, "location": location},
        )
        logger.info("Registered hospital id=%s name=%r", hospital.id, name)
        return hospital

    def get_hospital(self, hospital_id: int) -> Hospital | None:
        return self.s.get(Hospital, hospital_id)

    # ---------- Devices ----------
    def register_device(
        self,
        name: str,
        model: str,
        serial_number: str,
        manufacturer: str,
        purchase_date: int,
        warranty_expiry: int,
        hospital_id: int,
        caller: str | None,
    ) -> int:
        """Register a device at an existing hospital. Returns the new device id."""
        self.access.ensure_authorized(caller, "device.register")
        if self.s.get(Hospital, hospital_id) is None:
            raise NotFound(f"Hospital {hospital_id} not found.")

        now = datetime.utcnow()
        device = Device(
            id=next_id(self.s, COUNTER_DEVICE),
            name=name,
            model=model,
            serial_number=serial_number,
            manufacturer=manufacturer,
            purchase_date=purchase_date,
            warranty_expiry=warranty_expiry,
            hospital_id=hospital_id,
            status=DEVICE_STATUS_ACTIVE,
            created_at=now,
            updated_at=now,
        )
        self.s.add(device)
        self.s.flush()

        record_event(
            self.s,
            actor=caller,
            action="device.register",
            entity_type="Device",
            entity_id=str(device.id),
            metadata={"name": name, "serial_number": serial_number, "hospital_id": hospital_id},
        )
        logger.info("Registered device id=%s serial=%r hospital_id=%s", device.id, serial_number, hospital_id)
        return device.id

    def update_device_status(self, device_id: int, status: str, caller: str | None) -> Device:
        self.access.ensure_authorized(caller, "device.status_change")
        device = self.s.get(Device, device_id)
        if device is None:
            raise NotFound(f"Device {device_id} not found.")

        old_status = device.status
        device.status = status
        device.updated_at = datetime.utcnow()

        record_event(
            self.s,
            actor=caller,
            action="device.status_change",
            entity_type="Device",
            entity_id=str(device.id),
            metadata={"from": old_status, "to": status},
        )
        logger.info("Device id=%s status %r -> %r", device.id, old_status, status)
        return device

    def get_device(self, device_id: int) -> Device | None:
        return self.s.get(Device, device_id)

    def list_devices(self, hospital_id: int | None = None) -> list[Device]:
        q = select(Device)
        if hospital_id is not None:
            q = q.where(Device.hospital_id == hospital_id)
        return list(self.s.scalars(q.order_by(Device.id.asc())))
