"""Manually recorded gate outcomes: document verification and off-card payments."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, String, Text, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.gateways.base import VerificationStatus
from app.models.types import UTCDateTime, utcnow


class VerificationDecision(Base):
    """Latest verification decision for a renter (or a guest booking)."""

    __tablename__ = "verification_decisions"

    # Renter ID, or booking ID for guest bookings
    subject_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    status: Mapped[VerificationStatus] = mapped_column(
        SAEnum(VerificationStatus, native_enum=False, length=20), nullable=False
    )
    reason: Mapped[str | None] = mapped_column(Text)
    decided_by: Mapped[str] = mapped_column(String(100), default="admin")

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)


class SettlementRecord(Base):
    """Payment received outside the card gateway (bank transfer, desk payment)."""

    __tablename__ = "manual_settlements"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id", ondelete="CASCADE"), primary_key=True
    )
    settled: Mapped[bool] = mapped_column(Boolean, default=True)
    reference: Mapped[str | None] = mapped_column(String(100))

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)
