from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from clubreserve.core.overlap import is_overlapping

BASE = datetime(2026, 3, 3, 10, 0, tzinfo=timezone.utc)


def _at(minutes: int) -> datetime:
    return BASE + timedelta(minutes=minutes)


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ((0, 90), (45, 135), True),  # partial
        ((0, 90), (90, 180), False),  # touching end to start
        ((0, 180), (30, 60), True),  # contained
        ((0, 90), (0, 90), True),  # identical
        ((0, 60), (120, 180), False),  # disjoint
    ],
)
def test_overlap_is_symmetric(a, b, expected) -> None:
    assert is_overlapping(_at(a[0]), _at(a[1]), _at(b[0]), _at(b[1])) is expected
    assert is_overlapping(_at(b[0]), _at(b[1]), _at(a[0]), _at(a[1])) is expected


def test_zero_length_interval_never_overlaps() -> None:
    assert is_overlapping(_at(30), _at(30), _at(0), _at(90)) is False
    assert is_overlapping(_at(0), _at(90), _at(30), _at(30)) is False
    assert is_overlapping(_at(30), _at(30), _at(30), _at(30)) is False


def test_works_on_minutes_since_midnight() -> None:
    assert is_overlapping(18 * 60, 19 * 60 + 30, 19 * 60, 20 * 60 + 30) is True
    assert is_overlapping(18 * 60, 19 * 60 + 30, 19 * 60 + 30, 21 * 60) is False
