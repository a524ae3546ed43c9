from datetime import datetime
from typing import Optional

from .base import StandardizedModel


class ScheduleEntry(StandardizedModel):
    """One cell of the day grid: a court at a catalog slot."""

    court_id: str
    court_name: str
    slot: str
    start_at: datetime
    end_at: datetime
    is_available: bool
    reservation_id: Optional[str] = None
    under_maintenance: bool = False
