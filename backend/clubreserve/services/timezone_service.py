"""
Centralized timezone handling for the reservation backend.

Rules:
- Slots are expressed in the court's local wall-clock time ("HH:mm")
- All storage: UTC
- All comparisons: UTC
- A court without its own timezone uses the configured deployment default
"""

from datetime import date, datetime, time, timedelta, timezone
import re
from typing import Optional, Tuple

import pytz

from ..core.exceptions import (
    ConfigurationException,
    InvalidTimeFormatException,
    NonexistentLocalTimeException,
    ValidationException,
)

_TIME_RE = re.compile(r"[0-9]{2}:[0-9]{2}")

MINUTES_PER_DAY = 24 * 60


class TimezoneService:
    """Handles all timezone conversions consistently."""

    @staticmethod
    def get_timezone(tz_str: Optional[str], default_tz: Optional[str] = None) -> pytz.BaseTzInfo:
        """
        Resolve the court's zone, falling back to the deployment default.

        Raises:
            ConfigurationException: If neither name is set or the chosen one is unknown
        """
        name = tz_str or default_tz
        if not name:
            raise ConfigurationException(
                "No timezone configured for court and no default timezone set",
                code="TIMEZONE_NOT_CONFIGURED",
            )
        try:
            return pytz.timezone(name)
        except pytz.UnknownTimeZoneError:
            raise ConfigurationException(
                f"Unknown timezone: {name}",
                code="UNKNOWN_TIMEZONE",
                details={"timezone": name},
            )

    @staticmethod
    def parse_time(value: str) -> time:
        """
        Parse a strict "HH:mm" string.

        Raises:
            InvalidTimeFormatException: On any other shape or an out-of-range field
        """
        if not isinstance(value, str) or not _TIME_RE.fullmatch(value):
            raise InvalidTimeFormatException(value)
        hours, minutes = int(value[:2]), int(value[3:])
        if hours > 23 or minutes > 59:
            raise InvalidTimeFormatException(value)
        return time(hours, minutes)

    @staticmethod
    def time_to_minutes(value: str) -> int:
        parsed = TimezoneService.parse_time(value)
        return parsed.hour * 60 + parsed.minute

    @staticmethod
    def minutes_to_time(minutes: int) -> str:
        if minutes < 0 or minutes >= MINUTES_PER_DAY:
            raise ValidationException(
                f"{minutes} minutes is outside a single day",
                code="TIME_OUT_OF_RANGE",
            )
        return f"{minutes // 60:02d}:{minutes % 60:02d}"

    @staticmethod
    def add_minutes(value: str, minutes: int) -> str:
        """Add minutes to a local "HH:mm" time without wrapping past midnight."""
        return TimezoneService.minutes_to_time(TimezoneService.time_to_minutes(value) + minutes)

    @staticmethod
    def localize(local_date: date, local_time: time, tz: pytz.BaseTzInfo) -> datetime:
        """
        Attach ``tz`` to a local wall-clock value.

        Uses the timezone rules valid on ``local_date`` (not today).

        Raises:
            NonexistentLocalTimeException: If the time doesn't exist (DST spring-forward gap)
        """
        naive_dt = datetime.combine(local_date, local_time)

        try:
            # is_dst=None raises exception for ambiguous/nonexistent times
            return tz.localize(naive_dt, is_dst=None)
        except pytz.exceptions.AmbiguousTimeError:
            # Fall back (time exists twice) - use first occurrence
            return tz.localize(naive_dt, is_dst=True)
        except pytz.exceptions.NonExistentTimeError:
            raise NonexistentLocalTimeException(local_date, local_time.strftime("%H:%M"), tz.zone)

    @staticmethod
    def local_slot_to_instant(local_date: date, slot: str, tz: pytz.BaseTzInfo) -> datetime:
        """Convert a local date plus "HH:mm" slot into an aware UTC instant."""
        local_dt = TimezoneService.localize(local_date, TimezoneService.parse_time(slot), tz)
        return local_dt.astimezone(timezone.utc)

    @staticmethod
    def local_day_range(local_date: date, tz: pytz.BaseTzInfo) -> Tuple[datetime, datetime]:
        """
        Absolute range covering the local calendar day, as [start, end).

        The end is the next local midnight, so DST days are 23 or 25 hours long.
        """
        start = TimezoneService.start_of_local_day(local_date, tz)
        end = TimezoneService.start_of_local_day(local_date + timedelta(days=1), tz)
        return start, end

    @staticmethod
    def start_of_local_day(local_date: date, tz: pytz.BaseTzInfo) -> datetime:
        """
        First instant of ``local_date`` in ``tz``, as aware UTC.

        Where the clocks jump forward at midnight the day starts at the end
        of the gap instead.
        """
        naive_midnight = datetime.combine(local_date, time(0, 0))
        try:
            local_dt = tz.localize(naive_midnight, is_dst=None)
        except pytz.exceptions.AmbiguousTimeError:
            local_dt = tz.localize(naive_midnight, is_dst=True)
        except pytz.exceptions.NonExistentTimeError:
            # Offset from before the jump lands on the first real instant
            local_dt = tz.normalize(tz.localize(naive_midnight, is_dst=False))
        return local_dt.astimezone(timezone.utc)

    @staticmethod
    def utc_to_local(utc_dt: datetime, tz: pytz.BaseTzInfo) -> datetime:
        """Convert UTC datetime to local timezone."""
        if utc_dt.tzinfo is None:
            utc_dt = utc_dt.replace(tzinfo=timezone.utc)
        return tz.normalize(utc_dt.astimezone(tz))

    @staticmethod
    def format_local(utc_dt: datetime, tz: pytz.BaseTzInfo) -> Tuple[str, str]:
        """Return ("YYYY-MM-DD", "HH:mm") of an instant in ``tz``."""
        local_dt = TimezoneService.utc_to_local(utc_dt, tz)
        return local_dt.date().isoformat(), local_dt.strftime("%H:%M")
