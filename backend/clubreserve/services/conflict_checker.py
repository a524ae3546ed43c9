# backend/clubreserve/services/conflict_checker.py
"""
Conflict Checker Service.

Centralizes conflict detection for single reservations and for recurring
series. Every decision goes through ``is_overlapping``; the repository
query only narrows the candidate rows.
"""

from datetime import datetime
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.overlap import is_overlapping
from ..models.recurring_series import RecurringSeries
from ..models.reservation import Reservation, ReservationStatus
from ..repositories import RepositoryFactory
from ..repositories.recurring_series_repository import RecurringSeriesRepository
from ..repositories.reservation_repository import ReservationRepository
from .base import BaseService, Clock
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    def __init__(
        self,
        db: Session,
        repository: Optional[ReservationRepository] = None,
        series_repository: Optional[RecurringSeriesRepository] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock)
        self.repository = repository or RepositoryFactory.create_reservation_repository(db)
        self.series_repository = (
            series_repository or RepositoryFactory.create_recurring_series_repository(db)
        )

    @staticmethod
    def overlaps_any(
        start_at: datetime, end_at: datetime, reservations: Iterable[Reservation]
    ) -> bool:
        """True if [start_at, end_at) overlaps any non-cancelled reservation in the snapshot."""
        return any(
            is_overlapping(start_at, end_at, r.start_at, r.end_at)
            for r in reservations
            if r.status != ReservationStatus.CANCELLED
        )

    @staticmethod
    def local_ranges_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
        """Minute-resolution overlap of two same-day local "HH:mm" ranges."""
        return is_overlapping(
            TimezoneService.time_to_minutes(start_a),
            TimezoneService.time_to_minutes(end_a),
            TimezoneService.time_to_minutes(start_b),
            TimezoneService.time_to_minutes(end_b),
        )

    def find_reservation_conflicts(
        self,
        court_id: str,
        start_at: datetime,
        end_at: datetime,
        exclude_reservation_id: Optional[str] = None,
    ) -> List[Reservation]:
        """
        Non-cancelled reservations on the court that overlap [start_at, end_at).

        Must be called inside the transaction that holds the court lock for
        the answer to stay valid until commit.
        """
        candidates = self.repository.find_overlapping(
            court_id, start_at, end_at, exclude_reservation_id
        )
        return [r for r in candidates if is_overlapping(start_at, end_at, r.start_at, r.end_at)]

    def find_series_conflicts(
        self,
        court_id: str,
        day_of_week: int,
        start_time: str,
        end_time: str,
        exclude_series_id: Optional[str] = None,
    ) -> List[RecurringSeries]:
        """Active series on the same court and weekday whose local range overlaps."""
        candidates = self.series_repository.find_active_for_court_day(
            court_id, day_of_week, exclude_series_id
        )
        return [
            s
            for s in candidates
            if self.local_ranges_overlap(start_time, end_time, s.start_time, s.end_time)
        ]
