# backend/clubreserve/models/recurring_series.py
"""
Recurring (fixed weekly) reservation template.

A series does not hold its occurrences. Occurrences are reservations whose
``series_id`` points back here and are always looked up through that
indexed column.
"""

from enum import Enum
from typing import Any

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Index, Integer, Numeric, String
import ulid

from ..database import Base
from .types import UTCDateTime, utc_now


class SeriesStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class RecurringSeries(Base):
    __tablename__ = "recurring_series"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    court_id = Column(String(26), ForeignKey("courts.id"), nullable=False)
    activity_id = Column(String(26), ForeignKey("activity_types.id"), nullable=False)

    anchor_date = Column(Date, nullable=False)
    # date.weekday(): Monday == 0
    day_of_week = Column(Integer, nullable=False)
    # Local wall-clock times in the court's timezone, "HH:mm"
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    weeks = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), nullable=False, default=SeriesStatus.ACTIVE)

    holder_id = Column(String(64), nullable=True, index=True)
    guest_name = Column(String(120), nullable=True)
    guest_email = Column(String(255), nullable=True)
    guest_phone = Column(String(50), nullable=True)
    guest_document = Column(String(50), nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    cancelled_at = Column(UTCDateTime, nullable=True)
    cancelled_by_id = Column(String(64), nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('ACTIVE', 'CANCELLED')", name="ck_recurring_series_status"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_recurring_series_day_of_week"),
        CheckConstraint("weeks > 0", name="ck_recurring_series_weeks_positive"),
        CheckConstraint(
            "(holder_id IS NULL) <> (guest_name IS NULL)",
            name="ck_recurring_series_holder_xor_guest",
        ),
        Index("ix_recurring_series_court_day", "court_id", "day_of_week", "status"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = SeriesStatus.ACTIVE

    def __repr__(self) -> str:
        return (
            f"<RecurringSeries {self.id}: court={self.court_id} day={self.day_of_week} "
            f"{self.start_time}-{self.end_time} status={self.status}>"
        )

    @property
    def is_active(self) -> bool:
        return self.status == SeriesStatus.ACTIVE
