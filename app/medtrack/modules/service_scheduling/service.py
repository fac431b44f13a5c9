"""
Service scheduling service layer.

Owns service orders and their history. Device and technician existence is checked
through read-only lookups injected at construction, so this module never imports
the other registries and they never call back into it.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.medtrack.access import AccessControl
from app.medtrack.audit import record_event
from app.medtrack.clock import LedgerClock
from app.medtrack.constants import (
    COUNTER_SERVICE,
    SERVICE_STATUS_COMPLETED,
    SERVICE_STATUS_IN_PROGRESS,
    SERVICE_STATUS_SCHEDULED,
)
from app.medtrack.counters import next_id
from app.medtrack.errors import InvalidState, NotFound

from .models import ServiceHistoryEntry, ServiceOrder

logger = logging.getLogger(__name__)


class DeviceLookup(Protocol):
    def get_device(self, device_id: int) -> Any | None: ...


class TechnicianLookup(Protocol):
    def get_technician(self, technician_id: int) -> Any | None: ...


class ServiceScheduler:
    def __init__(
        self,
        s: Session,
        access: AccessControl,
        devices: DeviceLookup,
        technicians: TechnicianLookup,
        clock: LedgerClock,
    ) -> None:
        self.s = s
        self.access = access
        self.devices = devices
        self.technicians = technicians
        self.clock = clock

    def schedule_service(
        self,
        device_id: int,
        technician_id: int,
        scheduled_date: int,
        service_type: str,
        notes: str,
        caller: str | None,
    ) -> int:
        """
        Schedule a service order. Returns the new service id.

        Only existence of the device and technician is checked. Whether the technician
        must also be qualified for the device type is an open product decision.
        """
        self.access.ensure_authorized(caller, "service.schedule")
        if self.devices.get_device(device_id) is None:
            raise NotFound(f"Device {device_id} not found.")
        if self.technicians.get_technician(technician_id) is None:
            raise NotFound(f"Technician {technician_id} not found.")

        now = datetime.utcnow()
        order = ServiceOrder(
            id=next_id(self.s, COUNTER_SERVICE),
            device_id=device_id,
            technician_id=technician_id,
            scheduled_date=scheduled_date,
            service_type=service_type,
            notes=notes,
            status=SERVICE_STATUS_SCHEDULED,
            created_at=now,
            updated_at=now,
        )
        self.s.add(order)
        self.s.flush()

        record_event(
            self.s,
            actor=caller,
            action="service.schedule",
            entity_type="ServiceOrder",
            entity_id=str(order.id),
            metadata={
                "device_id": device_id,
                "technician_id": technician_id,
                "scheduled_date": scheduled_date,
                "service_type": service_type,
            },
        )
        logger.info("Scheduled service id=%s device_id=%s technician_id=%s", order.id, device_id, technician_id)
        return order.id

    def update_service_status(self, service_id: int, status: str, caller: str | None) -> ServiceOrder:
        """Generic status setter: any string, any transition."""
        self.access.ensure_authorized(caller, "service.status_change")
        order = self.s.get(ServiceOrder, service_id)
        if order is None:
            raise NotFound(f"Service {service_id} not found.")

        old_status = order.status
        order.status = status
        order.updated_at = datetime.utcnow()

        record_event(
            self.s,
            actor=caller,
            action="service.status_change",
            entity_type="ServiceOrder",
            entity_id=str(order.id),
            metadata={"from": old_status, "to": status},
        )
        logger.info("Service id=%s status %r -> %r", order.id, old_status, status)
        return order

    def complete_service(
        self,
        service_id: int,
        findings: str,
        parts_replaced: list[str],
        next_service_date: int,
        caller: str | None,
    ) -> ServiceHistoryEntry:
        """
        Move an in-progress order to completed and write its history entry.
        Both writes belong to the caller's transaction and commit together.
        """
        self.access.ensure_authorized(caller, "service.complete")
        order = self.s.get(ServiceOrder, service_id)
        if order is None:
            raise NotFound(f"Service {service_id} not found.")
        if order.status != SERVICE_STATUS_IN_PROGRESS:
            raise InvalidState(
                f"Service {service_id} is {order.status!r}; only {SERVICE_STATUS_IN_PROGRESS!r} services can be completed."
            )
        # Reachable only if the generic setter moved a completed order back to in-progress.
        if self.get_service_history(order.device_id, order.id) is not None:
            raise InvalidState(f"Service {service_id} already has a history entry.")

        entry = ServiceHistoryEntry(
            device_id=order.device_id,
            service_id=order.id,
            completion_date=self.clock.height(),
            findings=findings,
            parts_replaced=list(parts_replaced),
            next_service_date=next_service_date,
        )
        order.status = SERVICE_STATUS_COMPLETED
        order.updated_at = datetime.utcnow()
        self.s.add(entry)
        self.s.flush()

        record_event(
            self.s,
            actor=caller,
            action="service.complete",
            entity_type="ServiceOrder",
            entity_id=str(order.id),
            metadata={
                "device_id": order.device_id,
                "completion_date": entry.completion_date,
                "parts_replaced": entry.parts_replaced,
                "next_service_date": next_service_date,
            },
        )
        logger.info("Completed service id=%s device_id=%s at height=%s", order.id, order.device_id, entry.completion_date)
        return entry

    def get_service(self, service_id: int) -> ServiceOrder | None:
        return self.s.get(ServiceOrder, service_id)

    def get_service_history(self, device_id: int, service_id: int) -> ServiceHistoryEntry | None:
        return self.s.get(ServiceHistoryEntry, (device_id, service_id))

    def list_service_history(self, device_id: int) -> list[ServiceHistoryEntry]:
        q = select(ServiceHistoryEntry).where(ServiceHistoryEntry.device_id == device_id)
        return list(self.s.scalars(q.order_by(ServiceHistoryEntry.service_id.asc())))
