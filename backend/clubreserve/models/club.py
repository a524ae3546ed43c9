# backend/clubreserve/models/club.py
"""
Club, court and activity records.

These are owned by the club administration side; the scheduling core only
reads them (existence, maintenance flag, timezone, duration, base price).
"""

from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import UTCDateTime, utc_now


class Club(Base):
    __tablename__ = "clubs"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(120), nullable=False)
    slug = Column(String(120), nullable=False, unique=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    courts = relationship("Court", back_populates="club", order_by="Court.name")

    def __repr__(self) -> str:
        return f"<Club {self.id}: {self.slug}>"


class Court(Base):
    """A bookable physical court belonging to a club."""

    __tablename__ = "courts"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    club_id = Column(String(26), ForeignKey("clubs.id"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    surface = Column(String(50), nullable=True)
    is_indoor = Column(Boolean, nullable=False, default=False)
    # IANA name; NULL means the deployment default applies
    timezone = Column(String(64), nullable=True)
    is_under_maintenance = Column(Boolean, nullable=False, default=False)
    base_price = Column(Numeric(10, 2), nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)

    club = relationship("Club", back_populates="courts")

    __table_args__ = (
        CheckConstraint("base_price IS NULL OR base_price >= 0", name="ck_courts_base_price"),
    )

    def __repr__(self) -> str:
        return f"<Court {self.id}: {self.name} club={self.club_id}>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "club_id": self.club_id,
            "name": self.name,
            "surface": self.surface,
            "is_indoor": self.is_indoor,
            "timezone": self.timezone,
            "is_under_maintenance": self.is_under_maintenance,
            "base_price": float(self.base_price) if self.base_price is not None else None,
        }


class ActivityType(Base):
    """A bookable activity (padel, tennis, ...) with its default slot length."""

    __tablename__ = "activity_types"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(80), nullable=False, unique=True)
    default_duration_minutes = Column(Integer, nullable=False, default=90)

    __table_args__ = (
        CheckConstraint("default_duration_minutes > 0", name="check_duration_positive"),
    )

    def __repr__(self) -> str:
        return f"<ActivityType {self.id}: {self.name} ({self.default_duration_minutes}m)>"
