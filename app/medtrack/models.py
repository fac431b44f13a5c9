from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class RegistryCounter(Base):
    """
    Per-registry "last id" counter. Advanced only inside the transaction that inserts
    the new record, so a rolled-back creation never consumes an id.
    """

    __tablename__ = "registry_counters"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)  # "device", "technician", "service"
    last_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class AuditEvent(Base):
    """
    Append-only audit trail event.
    Written in the same transaction as the mutation it describes; failed calls write nothing.
    """

    __tablename__ = "audit_events"
    __table_args__ = (
        Index("idx_audit_events_entity", "entity_type", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_identity: Mapped[str | None] = mapped_column(String(255), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "device.register"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "Device"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)  # string for composite keys

    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.medtrack.modules.devices.models import Device, Hospital  # noqa: E402,F401
from app.medtrack.modules.technicians.models import Qualification, Technician  # noqa: E402,F401
from app.medtrack.modules.service_scheduling.models import ServiceHistoryEntry, ServiceOrder  # noqa: E402,F401
