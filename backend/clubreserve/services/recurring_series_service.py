# backend/clubreserve/services/recurring_series_service.py
"""
Recurring Series Service.

A series books the same court at the same local time every week. Creating
one stores the template and generates its occurrences in the same
transaction, under the same court lock as single reservations. Occurrences
that would overlap an existing reservation are skipped, and so are weeks in
which the local time does not exist. A shorter series than requested is
normal and is reported back to the caller.

Cancelling a series cancels only the occurrences that have not started yet;
past ones stay as they were.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
import logging
from typing import List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    ActivityNotFoundException,
    BusinessRuleException,
    ForbiddenException,
    NonexistentLocalTimeException,
    ResourceNotFoundException,
    SeriesConflictException,
    SeriesNotFoundException,
    ValidationException,
)
from ..models.recurring_series import RecurringSeries, SeriesStatus
from ..models.reservation import Reservation, ReservationStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..schemas.reservation import Caller, GuestDescriptor
from ..schemas.series import SeriesCreateResult
from .base import BaseService, Clock
from .booking_rules import guest_columns, require_aware, resolve_holder, resolve_price
from .conflict_checker import ConflictChecker
from .ledger_service import derive_payment_status
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


class RecurringSeriesService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        default_timezone: Optional[str] = None,
        default_weeks: Optional[int] = None,
        max_weeks: Optional[int] = None,
    ):
        super().__init__(db, clock)
        self.repository = RepositoryFactory.create_recurring_series_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)
        self.catalog_repository = RepositoryFactory.create_catalog_repository(db)
        self.conflict_checker = ConflictChecker(
            db,
            repository=self.reservation_repository,
            series_repository=self.repository,
            clock=self.clock,
        )
        self.default_timezone = default_timezone or settings.default_timezone
        self.default_weeks = default_weeks or settings.default_series_weeks
        self.max_weeks = max_weeks or settings.max_series_weeks

    @BaseService.measure_operation("create_series")
    def create_series(
        self,
        caller: Caller,
        court_id: str,
        activity_id: str,
        first_start: datetime,
        weeks: Optional[int] = None,
        guest: Optional[GuestDescriptor] = None,
        price: Optional[Union[Decimal, int, float, str]] = None,
        allow_guest_without_contact: bool = False,
    ) -> SeriesCreateResult:
        """
        Create a weekly series and generate up to ``weeks`` CONFIRMED occurrences.

        Raises:
            ValidationException: Bad input, past start, end past local midnight
            SeriesConflictException: Another active series holds an overlapping
                local range on the same court and weekday
            ResourceNotFoundException / ActivityNotFoundException: Unknown ids
        """
        holder_id, guest = resolve_holder(caller, guest, allow_guest_without_contact)
        require_aware(first_start, "first_start")
        weeks = self.default_weeks if weeks is None else weeks
        if weeks < 1 or weeks > self.max_weeks:
            raise ValidationException(
                f"weeks must be between 1 and {self.max_weeks}",
                code="INVALID_SERIES_LENGTH",
                details={"weeks": weeks},
            )
        now = self.now()
        if first_start < now:
            raise ValidationException(
                "Cannot start a recurring reservation in the past",
                code="BOOKING_IN_PAST",
                details={"first_start": first_start.isoformat()},
            )

        with self.transaction():
            court = self.reservation_repository.lock_court(court_id)
            if court is None:
                raise ResourceNotFoundException(court_id)
            activity = self.catalog_repository.get_activity(activity_id)
            if activity is None:
                raise ActivityNotFoundException(activity_id)
            if court.is_under_maintenance:
                raise BusinessRuleException(
                    "Court is under maintenance",
                    code="COURT_UNDER_MAINTENANCE",
                    details={"court_id": court_id},
                )
            amount = resolve_price(price, court)

            tz = TimezoneService.get_timezone(court.timezone, self.default_timezone)
            local_start = TimezoneService.utc_to_local(first_start, tz)
            if local_start.second or local_start.microsecond:
                raise ValidationException(
                    "Recurring reservations must start on a whole minute",
                    code="INVALID_SERIES_START",
                )
            anchor_date = local_start.date()
            start_time = local_start.strftime("%H:%M")
            end_time = TimezoneService.add_minutes(start_time, activity.default_duration_minutes)
            day_of_week = anchor_date.weekday()

            clashing = self.conflict_checker.find_series_conflicts(
                court.id, day_of_week, start_time, end_time
            )
            if clashing:
                prometheus_metrics.inc_slot_conflict("series")
                raise SeriesConflictException(
                    details={
                        "court_id": court.id,
                        "day_of_week": day_of_week,
                        "start_time": start_time,
                        "end_time": end_time,
                        "conflicting_series_ids": [s.id for s in clashing],
                    }
                )

            series = self.repository.create(
                court_id=court.id,
                activity_id=activity.id,
                anchor_date=anchor_date,
                day_of_week=day_of_week,
                start_time=start_time,
                end_time=end_time,
                weeks=weeks,
                price=amount,
                status=SeriesStatus.ACTIVE,
                holder_id=holder_id,
                **guest_columns(guest),
            )

            candidates, skipped_dates = self._candidate_starts(anchor_date, start_time, weeks, tz)
            duration = timedelta(minutes=activity.default_duration_minutes)
            existing: List[Reservation] = []
            if candidates:
                existing = self.reservation_repository.find_for_courts_in_range(
                    [court.id], candidates[0][1], candidates[-1][1] + duration
                )

            created = 0
            for local_date, start_at in candidates:
                if ConflictChecker.overlaps_any(start_at, start_at + duration, existing):
                    self.logger.info(
                        f"Series {series.id}: skipping {local_date}, slot already taken",
                        extra={"series_id": series.id, "court_id": court.id},
                    )
                    skipped_dates.append(local_date)
                    continue
                self.reservation_repository.create(
                    court_id=court.id,
                    activity_id=activity.id,
                    start_at=start_at,
                    duration_minutes=activity.default_duration_minutes,
                    price=amount,
                    status=ReservationStatus.CONFIRMED,
                    payment_status=derive_payment_status(amount, Decimal("0")),
                    confirmed_at=now,
                    holder_id=holder_id,
                    series_id=series.id,
                    **guest_columns(guest),
                )
                created += 1

        skipped_dates.sort()
        prometheus_metrics.inc_series_skipped(len(skipped_dates))
        self.logger.info(
            f"Series {series.id} created with {created}/{weeks} occurrences",
            extra={"series_id": series.id, "court_id": court.id, "created": created},
        )
        return SeriesCreateResult(
            series_id=series.id,
            occurrences_created=created,
            occurrences_requested=weeks,
            skipped_dates=skipped_dates,
        )

    def _candidate_starts(
        self, anchor_date: date, start_time: str, weeks: int, tz
    ) -> Tuple[List[Tuple[date, datetime]], List[date]]:
        """Weekly (local date, UTC start) pairs keeping the same local wall-clock time."""
        candidates: List[Tuple[date, datetime]] = []
        gaps: List[date] = []
        for week in range(weeks):
            local_date = anchor_date + timedelta(days=DAYS_PER_WEEK * week)
            try:
                start_at = TimezoneService.local_slot_to_instant(local_date, start_time, tz)
            except NonexistentLocalTimeException:
                self.logger.info(f"Skipping {local_date} {start_time}: local time does not exist")
                gaps.append(local_date)
                continue
            candidates.append((local_date, start_at))
        return candidates, gaps

    @BaseService.measure_operation("cancel_series")
    def cancel_series(
        self,
        series_id: str,
        actor_id: Optional[str] = None,
        club_scope_id: Optional[str] = None,
    ) -> int:
        """
        Cancel a series and its not-yet-started occurrences.

        Returns the number of occurrences cancelled. Cancelling an already
        cancelled series is a no-op that returns 0.
        """
        with self.transaction():
            series = self.repository.get_by_id(series_id, load_relationships=False)
            if series is None:
                raise SeriesNotFoundException(series_id)
            if club_scope_id is not None:
                court = self.catalog_repository.get_court(series.court_id)
                if court is None or court.club_id != club_scope_id:
                    raise ForbiddenException(
                        "Series belongs to another club",
                        code="CLUB_SCOPE_MISMATCH",
                        details={"series_id": series_id},
                    )
            if not series.is_active:
                self.logger.info(f"Series {series_id} already cancelled")
                return 0

            now = self.now()
            series.status = SeriesStatus.CANCELLED
            series.cancelled_at = now
            series.cancelled_by_id = actor_id
            self.repository.flush()
            cancelled = self.reservation_repository.cancel_future_occurrences(
                series.id, now, actor_id
            )

        self.logger.info(
            f"Series {series_id} cancelled, {cancelled} future occurrences cancelled",
            extra={"series_id": series_id, "cancelled": cancelled},
        )
        return cancelled

    def get_series(self, series_id: str) -> RecurringSeries:
        series = self.repository.get_by_id(series_id, load_relationships=False)
        if series is None:
            raise SeriesNotFoundException(series_id)
        return series

    def list_occurrences(self, series_id: str) -> List[Reservation]:
        self.get_series(series_id)
        return self.reservation_repository.find_by_series(series_id)
