from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

import pytest
import pytz

from clubreserve.core.exceptions import (
    ConfigurationException,
    InvalidTimeFormatException,
    NonexistentLocalTimeException,
    ValidationException,
)
from clubreserve.services.timezone_service import TimezoneService

NEW_YORK = pytz.timezone("America/New_York")
BUENOS_AIRES = pytz.timezone("America/Argentina/Buenos_Aires")


def test_parse_time_accepts_strict_hhmm() -> None:
    assert TimezoneService.parse_time("08:00") == time(8, 0)
    assert TimezoneService.parse_time("23:59") == time(23, 59)


@pytest.mark.parametrize(
    "value",
    [
        "8:00",
        "24:00",
        "12:60",
        "12:00:00",
        "",
        "ab:cd",
        "12:30\n",
        "١٢:٣٠",  # Arabic-Indic digits
        1200,
        None,
    ],
)
def test_parse_time_rejects_other_shapes(value) -> None:
    with pytest.raises(InvalidTimeFormatException) as exc_info:
        TimezoneService.parse_time(value)
    assert exc_info.value.code == "INVALID_TIME_FORMAT"


def test_add_minutes_within_day() -> None:
    assert TimezoneService.add_minutes("22:00", 90) == "23:30"
    assert TimezoneService.add_minutes("09:30", 45) == "10:15"


def test_add_minutes_past_midnight_is_rejected() -> None:
    with pytest.raises(ValidationException) as exc_info:
        TimezoneService.add_minutes("23:00", 90)
    assert exc_info.value.code == "TIME_OUT_OF_RANGE"


def test_local_slot_to_instant_uses_court_offset() -> None:
    instant = TimezoneService.local_slot_to_instant(date(2026, 1, 15), "08:00", BUENOS_AIRES)
    assert instant == datetime(2026, 1, 15, 11, 0, tzinfo=timezone.utc)
    assert instant.tzinfo == timezone.utc


def test_local_time_inside_dst_gap_raises() -> None:
    with pytest.raises(NonexistentLocalTimeException) as exc_info:
        TimezoneService.local_slot_to_instant(date(2026, 3, 8), "02:30", NEW_YORK)
    assert exc_info.value.details["timezone"] == "America/New_York"


def test_ambiguous_local_time_resolves_to_first_occurrence() -> None:
    instant = TimezoneService.local_slot_to_instant(date(2026, 11, 1), "01:30", NEW_YORK)
    # First 01:30 is still EDT (UTC-4)
    assert instant == datetime(2026, 11, 1, 5, 30, tzinfo=timezone.utc)


def test_local_day_range_on_spring_forward_day_is_23_hours() -> None:
    start, end = TimezoneService.local_day_range(date(2026, 3, 8), NEW_YORK)
    assert start == datetime(2026, 3, 8, 5, 0, tzinfo=timezone.utc)
    assert end == datetime(2026, 3, 9, 4, 0, tzinfo=timezone.utc)
    assert end - start == timedelta(hours=23)


def test_format_local_round_trips_slot() -> None:
    instant = datetime(2026, 1, 15, 11, 0, tzinfo=timezone.utc)
    assert TimezoneService.format_local(instant, BUENOS_AIRES) == ("2026-01-15", "08:00")


def test_get_timezone_falls_back_to_default() -> None:
    assert TimezoneService.get_timezone(None, "UTC").zone == "UTC"
    assert TimezoneService.get_timezone("America/New_York", "UTC").zone == "America/New_York"


def test_get_timezone_without_any_name_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationException) as exc_info:
        TimezoneService.get_timezone(None, None)
    assert exc_info.value.code == "TIMEZONE_NOT_CONFIGURED"

    with pytest.raises(ConfigurationException) as exc_info:
        TimezoneService.get_timezone("Mars/Olympus_Mons")
    assert exc_info.value.code == "UNKNOWN_TIMEZONE"


def test_local_day_range_when_midnight_is_skipped() -> None:
    santiago = pytz.timezone("America/Santiago")
    # Chile moves clocks from 00:00 to 01:00 on this Sunday
    start, end = TimezoneService.local_day_range(date(2026, 9, 6), santiago)
    assert start == datetime(2026, 9, 6, 4, 0, tzinfo=timezone.utc)
    assert end == datetime(2026, 9, 7, 3, 0, tzinfo=timezone.utc)
    assert end - start == timedelta(hours=23)
    assert TimezoneService.format_local(start, santiago) == ("2026-09-06", "01:00")
