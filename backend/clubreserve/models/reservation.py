# backend/clubreserve/models/reservation.py
"""
Reservation model.

A reservation occupies one court for one absolute interval. The end instant
is always derived from the start and the activity duration at construction
time. Reservations are never deleted: cancellation and completion are status
transitions so the history stays available for reporting.
"""

from datetime import datetime, timedelta
from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import PaymentMethod
from ..database import Base
from .types import UTCDateTime, utc_now

logger = logging.getLogger(__name__)


class ReservationStatus(str, Enum):
    """Reservation lifecycle statuses."""

    PENDING = "PENDING"  # Created, not yet confirmed
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"  # End instant has passed
    CANCELLED = "CANCELLED"


ACTIVE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class PaymentStatus(str, Enum):
    """Cached result of comparing what is owed with what was collected."""

    PAID = "PAID"
    PARTIAL = "PARTIAL"
    DEBT = "DEBT"


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    court_id = Column(String(26), ForeignKey("courts.id"), nullable=False)
    activity_id = Column(String(26), ForeignKey("activity_types.id"), nullable=False)

    start_at = Column(UTCDateTime, nullable=False)
    end_at = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    price = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.DEBT)
    payment_method = Column(String(20), nullable=True)

    # Registered holder (identity provider id) or a guest descriptor, never both
    holder_id = Column(String(64), nullable=True, index=True)
    guest_name = Column(String(120), nullable=True)
    guest_email = Column(String(255), nullable=True)
    guest_phone = Column(String(50), nullable=True)
    guest_document = Column(String(50), nullable=True)

    series_id = Column(String(26), ForeignKey("recurring_series.id"), nullable=True, index=True)

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    confirmed_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)
    cancelled_by_id = Column(String(64), nullable=True)

    court = relationship("Court")
    activity = relationship("ActivityType")

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'COMPLETED', 'CANCELLED')",
            name="ck_reservations_status",
        ),
        CheckConstraint(
            "payment_status IN ('PAID', 'PARTIAL', 'DEBT')",
            name="ck_reservations_payment_status",
        ),
        CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        CheckConstraint("end_at > start_at", name="check_time_order"),
        CheckConstraint(
            "(holder_id IS NULL) <> (guest_name IS NULL)",
            name="ck_reservations_holder_xor_guest",
        ),
        Index("ix_reservations_court_window", "court_id", "start_at", "end_at"),
    )

    def __init__(self, *, duration_minutes: int, **kwargs: Any) -> None:
        if "end_at" in kwargs:
            raise ValueError("end_at is derived from start_at and duration_minutes")
        super().__init__(duration_minutes=duration_minutes, **kwargs)
        if self.start_at is None:
            raise ValueError("start_at is required")
        self.end_at = self.start_at + timedelta(minutes=duration_minutes)
        if not self.status:
            self.status = ReservationStatus.PENDING
        if not self.payment_status:
            self.payment_status = PaymentStatus.DEBT

    def __repr__(self) -> str:
        return (
            f"<Reservation {self.id}: court={self.court_id}, "
            f"{self.start_at}-{self.end_at}, status={self.status}>"
        )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def is_cancellable(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_guest(self) -> bool:
        return self.holder_id is None

    @property
    def display_name(self) -> str:
        return self.guest_name if self.is_guest else self.holder_id

    def confirm(self, payment_method: PaymentMethod, at: datetime) -> None:
        self.status = ReservationStatus.CONFIRMED
        self.payment_method = payment_method.value
        self.confirmed_at = at
        logger.info(f"Reservation {self.id} confirmed ({payment_method.value})")

    def cancel(self, cancelled_by_id: Optional[str], at: datetime) -> None:
        self.status = ReservationStatus.CANCELLED
        self.cancelled_at = at
        self.cancelled_by_id = cancelled_by_id
        logger.info(f"Reservation {self.id} cancelled by {cancelled_by_id}")


class IncidentalCharge(Base):
    """An extra charge (ball rental, drinks) added on top of a reservation's price."""

    __tablename__ = "reservation_charges"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    reservation_id = Column(String(26), ForeignKey("reservations.id"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(20), nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (CheckConstraint("amount > 0", name="check_charge_amount_positive"),)

    def __repr__(self) -> str:
        return (
            f"<IncidentalCharge {self.id}: reservation={self.reservation_id} amount={self.amount}>"
        )

    @property
    def is_deferred(self) -> bool:
        return not PaymentMethod(self.payment_method).collects_now
