from datetime import date
from typing import List

from pydantic import Field

from .base import StandardizedModel


class SeriesCreateResult(StandardizedModel):
    """Outcome of generating a recurring series; fewer occurrences than requested is normal."""

    series_id: str
    occurrences_created: int
    occurrences_requested: int
    # Local dates that were not generated (slot taken or local time did not exist)
    skipped_dates: List[date] = Field(default_factory=list)
