# backend/clubreserve/services/__init__.py
"""
Service layer for the reservation backend.

Services own transactions and business rules; repositories only run queries.
"""

from .availability_service import AvailabilityService
from .base import BaseService
from .conflict_checker import ConflictChecker
from .ledger_service import LedgerService, derive_payment_status
from .notification_service import LoggingNotificationDispatcher, NotificationDispatcher
from .recurring_series_service import RecurringSeriesService
from .reservation_service import ReservationService
from .slot_catalog import SlotCatalog
from .timezone_service import TimezoneService

__all__ = [
    "AvailabilityService",
    "BaseService",
    "ConflictChecker",
    "LedgerService",
    "LoggingNotificationDispatcher",
    "NotificationDispatcher",
    "RecurringSeriesService",
    "ReservationService",
    "SlotCatalog",
    "TimezoneService",
    "derive_payment_status",
]
