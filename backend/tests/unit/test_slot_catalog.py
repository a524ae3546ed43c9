from __future__ import annotations

from datetime import date, timedelta

import pytest
import pytz

from clubreserve.core.config import DEFAULT_SLOT_CATALOG, settings
from clubreserve.core.exceptions import InvalidTimeFormatException, ValidationException
from clubreserve.services.slot_catalog import SlotCatalog


def test_catalog_keeps_given_order() -> None:
    catalog = SlotCatalog(["19:00", "08:00", "12:30"])
    assert catalog.slots == ["19:00", "08:00", "12:30"]
    assert list(catalog) == ["19:00", "08:00", "12:30"]
    assert len(catalog) == 3
    assert "08:00" in catalog
    assert "09:00" not in catalog


def test_catalog_rejects_duplicates() -> None:
    with pytest.raises(ValidationException) as exc_info:
        SlotCatalog(["08:00", "09:30", "08:00"])
    assert exc_info.value.code == "DUPLICATE_SLOT"


def test_catalog_rejects_malformed_slot() -> None:
    with pytest.raises(InvalidTimeFormatException):
        SlotCatalog(["08:00", "9:30"])


def test_from_settings_uses_configured_catalog() -> None:
    catalog = SlotCatalog.from_settings()
    assert catalog.slots == settings.slot_catalog
    assert len(DEFAULT_SLOT_CATALOG) == 10


def test_slot_window_spans_activity_duration() -> None:
    catalog = SlotCatalog(["08:00"])
    start, end = catalog.slot_window(date(2026, 3, 3), "08:00", 90, pytz.UTC)
    assert start.hour == 8 and start.minute == 0
    assert end - start == timedelta(minutes=90)
