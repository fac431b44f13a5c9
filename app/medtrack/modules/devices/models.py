from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.medtrack.models import Base


class Hospital(Base):
    __tablename__ = "hospitals"

    # Caller-chosen, not assigned by a counter
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    contact: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class Device(Base):
    __tablename__ = "devices"
    __table_args__ = (
        Index("idx_devices_hospital", "hospital_id"),
        Index("idx_devices_status", "status"),
    )

    # Assigned from the "device" registry counter
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    serial_number: Mapped[str] = mapped_column(String(128), nullable=False)
    manufacturer: Mapped[str] = mapped_column(String(255), nullable=False)

    # Unix timestamps as supplied by the caller
    purchase_date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    warranty_expiry: Mapped[int] = mapped_column(BigInteger, nullable=False)

    hospital_id: Mapped[int] = mapped_column(ForeignKey("hospitals.id", ondelete="RESTRICT"), nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")  # active, maintenance, retired, ...

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
