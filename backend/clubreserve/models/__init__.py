# backend/clubreserve/models/__init__.py
"""
SQLAlchemy models for the reservation backend.

Importing this package registers every table on ``Base.metadata``.
"""

from .club import ActivityType, Club, Court
from .ledger import LedgerMovement, MovementType
from .recurring_series import RecurringSeries, SeriesStatus
from .reservation import (
    ACTIVE_STATUSES,
    IncidentalCharge,
    PaymentStatus,
    Reservation,
    ReservationStatus,
)

__all__ = [
    "ACTIVE_STATUSES",
    "ActivityType",
    "Club",
    "Court",
    "IncidentalCharge",
    "LedgerMovement",
    "MovementType",
    "PaymentStatus",
    "RecurringSeries",
    "Reservation",
    "ReservationStatus",
    "SeriesStatus",
]
