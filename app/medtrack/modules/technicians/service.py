"""
Technician registry service layer.
Handles technician records and per-device-type qualifications with their verification flag.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.medtrack.access import AccessControl
from app.medtrack.audit import record_event
from app.medtrack.constants import COUNTER_TECHNICIAN, TECHNICIAN_STATUS_ACTIVE
from app.medtrack.counters import next_id
from app.medtrack.errors import NotFound

from .models import Qualification, Technician

logger = logging.getLogger(__name__)


def _qualification_key(technician_id: int, device_type: str) -> str:
    return f"{technician_id}:{device_type}"


class TechnicianRegistry:
    def __init__(self, s: Session, access: AccessControl) -> None:
        self.s = s
        self.access = access

    def register_technician(
        self,
        name: str,
        contact: str,
        certification_date: int,
        certification_expiry: int,
        caller: str | None,
    ) -> int:
        """Register a technician as active. Returns the new technician id."""
        self.access.ensure_authorized(caller, "technician.register")

        now = datetime.utcnow()
        technician = Technician(
            id=next_id(self.s, COUNTER_TECHNICIAN),
            name=name,
            contact=contact,
            certification_date=certification_date,
            certification_expiry=certification_expiry,
            status=TECHNICIAN_STATUS_ACTIVE,
            created_at=now,
            updated_at=now,
        )
        self.s.add(technician)
        self.s.flush()

        record_event(
            self.s,
            actor=caller,
            action="technician.register",
            entity_type="Technician",
            entity_id=str(technician.id),
            metadata={"name": name, "certification_expiry": certification_expiry},
        )
        logger.info("Registered technician id=%s name=%r", technician.id, name)
        return technician.id

    def update_technician_status(self, technician_id: int, status: str, caller: str | None) -> Technician:
        self.access.ensure_authorized(caller, "technician.status_change")
        technician = self.s.get(Technician, technician_id)
        if technician is None:
            raise NotFound(f"Technician {technician_id} not found.")

        old_status = technician.status
        technician.status = status
        technician.updated_at = datetime.utcnow()

        record_event(
            self.s,
            actor=caller,
            action="technician.status_change",
            entity_type="Technician",
            entity_id=str(technician.id),
            metadata={"from": old_status, "to": status},
        )
        logger.info("Technician id=%s status %r -> %r", technician.id, old_status, status)
        return technician

    def add_qualification(
        self,
        technician_id: int,
        device_type: str,
        certification_level: str,
        caller: str | None,
    ) -> Qualification:
        """
        Add or replace the qualification for (technician, device type).
        Replacing resets verification: the new level has not been checked yet.
        """
        self.access.ensure_authorized(caller, "technician.qualification_add")
        if self.s.get(Technician, technician_id) is None:
            raise NotFound(f"Technician {technician_id} not found.")

        qualification = self.s.get(Qualification, (technician_id, device_type))
        replaced = qualification is not None
        if qualification is None:
            qualification = Qualification(technician_id=technician_id, device_type=device_type)
            self.s.add(qualification)
        qualification.certification_level = certification_level
        qualification.verified = False
        qualification.updated_at = datetime.utcnow()
        self.s.flush()

        record_event(
            self.s,
            actor=caller,
            action="technician.qualification_add",
            entity_type="Qualification",
            entity_id=_qualification_key(technician_id, device_type),
            metadata={"certification_level": certification_level, "replaced": replaced},
        )
        logger.info(
            "Qualification %s technician_id=%s device_type=%r level=%r",
            "replaced" if replaced else "added",
            technician_id,
            device_type,
            certification_level,
        )
        return qualification

    def verify_qualification(self, technician_id: int, device_type: str, caller: str | None) -> Qualification:
        self.access.ensure_authorized(caller, "technician.qualification_verify")
        qualification = self.s.get(Qualification, (technician_id, device_type))
        if qualification is None:
            raise NotFound(f"Qualification for technician {technician_id} on {device_type!r} not found.")

        qualification.verified = True
        qualification.updated_at = datetime.utcnow()

        record_event(
            self.s,
            actor=caller,
            action="technician.qualification_verify",
            entity_type="Qualification",
            entity_id=_qualification_key(technician_id, device_type),
            metadata={"certification_level": qualification.certification_level},
        )
        logger.info("Verified qualification technician_id=%s device_type=%r", technician_id, device_type)
        return qualification

    def is_qualified(self, technician_id: int, device_type: str) -> bool:
        qualification = self.s.get(Qualification, (technician_id, device_type))
        technician = self.s.get(Technician, technician_id)
        if qualification is None or technician is None:
            return False
        return qualification.verified and technician.status == TECHNICIAN_STATUS_ACTIVE

    def get_technician(self, technician_id: int) -> Technician | None:
        return self.s.get(Technician, technician_id)

    def get_qualification(self, technician_id: int, device_type: str) -> Qualification | None:
        return self.s.get(Qualification, (technician_id, device_type))

    def list_qualifications(self, technician_id: int) -> list[Qualification]:
        q = select(Qualification).where(Qualification.technician_id == technician_id)
        return list(self.s.scalars(q.order_by(Qualification.device_type.asc())))
