# backend/clubreserve/services/availability_service.py
"""
Availability Service.

Answers "which catalog slots are free" for one court or a set of courts on
a local calendar date. The computation itself is ``free_slots``, a pure
function of the catalog, the activity duration and a snapshot of
reservations; the service methods only load that snapshot.

Results are advisory. Only the booking transaction decides whether a slot
can actually be taken.
"""

from collections import OrderedDict
from datetime import date, timedelta
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set

import pytz
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    ActivityNotFoundException,
    NonexistentLocalTimeException,
    NotFoundException,
    ResourceNotFoundException,
)
from ..core.overlap import is_overlapping
from ..models.club import ActivityType, Court
from ..models.reservation import Reservation, ReservationStatus
from ..repositories import RepositoryFactory
from ..schemas.availability import ScheduleEntry
from .base import BaseService, Clock
from .slot_catalog import SlotCatalog
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

# Slots near midnight can run into the next day
SNAPSHOT_OVERRUN = timedelta(days=1)


class AvailabilityService(BaseService):
    def __init__(
        self,
        db: Session,
        catalog: Optional[SlotCatalog] = None,
        default_timezone: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock)
        self.catalog = catalog or SlotCatalog.from_settings()
        self.default_timezone = default_timezone or settings.default_timezone
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)
        self.catalog_repository = RepositoryFactory.create_catalog_repository(db)

    @staticmethod
    def free_slots(
        catalog: SlotCatalog,
        local_date: date,
        duration_minutes: int,
        tz: pytz.BaseTzInfo,
        reservations: Iterable[Reservation],
    ) -> List[str]:
        """
        Catalog slots on ``local_date`` that overlap none of ``reservations``.

        Cancelled rows in the snapshot are ignored. A slot whose local time
        does not exist that day is not offered.
        """
        active = [r for r in reservations if r.status != ReservationStatus.CANCELLED]
        free: List[str] = []
        for slot in catalog:
            try:
                start, end = catalog.slot_window(local_date, slot, duration_minutes, tz)
            except NonexistentLocalTimeException:
                continue
            if not any(is_overlapping(start, end, r.start_at, r.end_at) for r in active):
                free.append(slot)
        return free

    def _get_activity(self, activity_id: str) -> ActivityType:
        activity = self.catalog_repository.get_activity(activity_id)
        if activity is None:
            raise ActivityNotFoundException(activity_id)
        return activity

    def _timezone_for(self, court: Court) -> pytz.BaseTzInfo:
        return TimezoneService.get_timezone(court.timezone, self.default_timezone)

    def _snapshot(self, courts: Sequence[Court], target_date: date) -> Dict[str, List[Reservation]]:
        """Non-cancelled reservations per court that touch the local day of any court."""
        if not courts:
            return {}
        ranges = [
            TimezoneService.local_day_range(target_date, self._timezone_for(c)) for c in courts
        ]
        start = min(r[0] for r in ranges)
        end = max(r[1] for r in ranges) + SNAPSHOT_OVERRUN
        by_court: Dict[str, List[Reservation]] = {c.id: [] for c in courts}
        for reservation in self.reservation_repository.find_for_courts_in_range(
            [c.id for c in courts], start, end
        ):
            by_court.setdefault(reservation.court_id, []).append(reservation)
        return by_court

    @BaseService.measure_operation("available_slots")
    def available_slots(self, court_id: str, target_date: date, activity_id: str) -> List[str]:
        """Free local slot strings for one court, in catalog order."""
        court = self.catalog_repository.get_court(court_id)
        if court is None:
            raise ResourceNotFoundException(court_id)
        activity = self._get_activity(activity_id)
        if court.is_under_maintenance:
            self.logger.debug(f"Court {court_id} under maintenance, no availability")
            return []

        snapshot = self._snapshot([court], target_date)
        return self.free_slots(
            self.catalog,
            target_date,
            activity.default_duration_minutes,
            self._timezone_for(court),
            snapshot[court.id],
        )

    @BaseService.measure_operation("available_slots_across_courts")
    def available_slots_across_courts(
        self,
        target_date: date,
        activity_id: str,
        court_ids: Optional[Sequence[str]] = None,
        club_id: Optional[str] = None,
    ) -> Dict[str, Set[str]]:
        """
        Map each slot to the set of court ids free at that slot.

        Courts under maintenance are left out. Slots with no free court are
        dropped. Keys keep catalog order.
        """
        activity = self._get_activity(activity_id)
        courts = self.catalog_repository.list_courts(club_id=club_id, court_ids=court_ids)
        if court_ids is not None:
            missing = set(court_ids) - {c.id for c in courts}
            if missing:
                raise NotFoundException(
                    "Court not found",
                    code="RESOURCE_NOT_FOUND",
                    details={"court_ids": sorted(missing)},
                )
        courts = [c for c in courts if not c.is_under_maintenance]

        snapshot = self._snapshot(courts, target_date)
        by_slot: Dict[str, Set[str]] = OrderedDict((slot, set()) for slot in self.catalog)
        for court in courts:
            free = self.free_slots(
                self.catalog,
                target_date,
                activity.default_duration_minutes,
                self._timezone_for(court),
                snapshot[court.id],
            )
            for slot in free:
                by_slot[slot].add(court.id)

        return OrderedDict((slot, ids) for slot, ids in by_slot.items() if ids)

    @BaseService.measure_operation("day_schedule")
    def day_schedule(
        self, club_id: str, target_date: date, activity_id: str
    ) -> List[ScheduleEntry]:
        """Grid of every court and catalog slot for a club, with the blocking reservation."""
        if self.catalog_repository.get_club(club_id) is None:
            raise NotFoundException(
                "Club not found", code="CLUB_NOT_FOUND", details={"club_id": club_id}
            )
        activity = self._get_activity(activity_id)
        courts = self.catalog_repository.list_courts(club_id=club_id)
        snapshot = self._snapshot(courts, target_date)

        entries: List[ScheduleEntry] = []
        for court in courts:
            tz = self._timezone_for(court)
            active = [r for r in snapshot[court.id] if r.status != ReservationStatus.CANCELLED]
            for slot in self.catalog:
                try:
                    start, end = self.catalog.slot_window(
                        target_date, slot, activity.default_duration_minutes, tz
                    )
                except NonexistentLocalTimeException:
                    continue
                blocking = next(
                    (r for r in active if is_overlapping(start, end, r.start_at, r.end_at)),
                    None,
                )
                entries.append(
                    ScheduleEntry(
                        court_id=court.id,
                        court_name=court.name,
                        slot=slot,
                        start_at=start,
                        end_at=end,
                        is_available=blocking is None and not court.is_under_maintenance,
                        reservation_id=blocking.id if blocking is not None else None,
                        under_maintenance=court.is_under_maintenance,
                    )
                )
        return entries
