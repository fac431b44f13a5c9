from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.medtrack.models import Base


class ServiceOrder(Base):
    __tablename__ = "service_orders"
    __table_args__ = (
        Index("idx_service_orders_device", "device_id"),
        Index("idx_service_orders_technician", "technician_id"),
        Index("idx_service_orders_status", "status"),
    )

    # Assigned from the "service" registry counter
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    # Validated against the device/technician registries at scheduling time only;
    # no FK so the registries stay independently deployable.
    device_id: Mapped[int] = mapped_column(Integer, nullable=False)
    technician_id: Mapped[int] = mapped_column(Integer, nullable=False)

    scheduled_date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    service_type: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "Maintenance"
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(Text, nullable=False, default="scheduled")  # scheduled, in-progress, completed, ...

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class ServiceHistoryEntry(Base):
    """Written once when a service order completes; never updated."""

    __tablename__ = "service_history"

    device_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    service_id: Mapped[int] = mapped_column(Integer, primary_key=True)

    completion_date: Mapped[int] = mapped_column(BigInteger, nullable=False)  # ledger height at completion
    findings: Mapped[str] = mapped_column(Text, nullable=False, default="")
    parts_replaced: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    next_service_date: Mapped[int] = mapped_column(BigInteger, nullable=False)
