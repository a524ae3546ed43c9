"""
Interval overlap predicate.

Every conflict check in the backend goes through this module: the Python
predicate for intervals already in memory and the SQL clause that narrows
candidate rows in the database.
"""

from typing import Any, TypeVar

from sqlalchemy import and_
from sqlalchemy.sql.elements import ColumnElement

C = TypeVar("C")


def is_overlapping(start_a: C, end_a: C, start_b: C, end_b: C) -> bool:
    """
    Return True when half-open intervals [start_a, end_a) and [start_b, end_b) overlap.

    Works for any ordered values: aware datetimes, or minutes since midnight.
    A zero-length interval never overlaps anything, including itself.
    """
    if start_a == end_a or start_b == end_b:
        return False
    return start_a < end_b and end_a > start_b


def overlap_clause(start_column: Any, end_column: Any, start: Any, end: Any) -> ColumnElement:
    """SQL form of ``is_overlapping`` for rows holding [start_column, end_column)."""
    return and_(start_column < end, end_column > start)
