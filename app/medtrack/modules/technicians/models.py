from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.medtrack.models import Base


class Technician(Base):
    __tablename__ = "technicians"
    __table_args__ = (
        Index("idx_technicians_status", "status"),
    )

    # Assigned from the "technician" registry counter
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact: Mapped[str] = mapped_column(String(255), nullable=False)
    certification_date: Mapped[int] = mapped_column(BigInteger, nullable=False)
    certification_expiry: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="active")  # active, inactive, ...

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class Qualification(Base):
    __tablename__ = "qualifications"

    technician_id: Mapped[int] = mapped_column(ForeignKey("technicians.id", ondelete="RESTRICT"), primary_key=True)
    device_type: Mapped[str] = mapped_column(Text, primary_key=True)  # e.g. "MRI Scanner"

    certification_level: Mapped[str] = mapped_column(String(64), nullable=False)  # e.g. "Expert"
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
