"""
Slot catalog: the ordered local start times offered every day.

The catalog is shared by every court of the deployment. Each slot's length
comes from the activity being booked, not from the catalog.
"""

from datetime import date, datetime, timedelta
from typing import Iterator, List, Optional, Sequence, Tuple

import pytz

from ..core.config import settings
from ..core.exceptions import ValidationException
from .timezone_service import TimezoneService


class SlotCatalog:
    def __init__(self, slots: Sequence[str]):
        seen = set()
        for slot in slots:
            TimezoneService.parse_time(slot)
            if slot in seen:
                raise ValidationException(
                    f"Slot {slot} appears more than once in the catalog",
                    code="DUPLICATE_SLOT",
                )
            seen.add(slot)
        self._slots: Tuple[str, ...] = tuple(slots)

    @classmethod
    def from_settings(cls, slots: Optional[Sequence[str]] = None) -> "SlotCatalog":
        return cls(slots if slots is not None else settings.slot_catalog)

    def __iter__(self) -> Iterator[str]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, slot: object) -> bool:
        return slot in self._slots

    @property
    def slots(self) -> List[str]:
        return list(self._slots)

    def slot_window(
        self, local_date: date, slot: str, duration_minutes: int, tz: pytz.BaseTzInfo
    ) -> Tuple[datetime, datetime]:
        """Absolute [start, end) of a slot on a local date for the given duration."""
        start = TimezoneService.local_slot_to_instant(local_date, slot, tz)
        return start, start + timedelta(minutes=duration_minutes)
