# backend/clubreserve/repositories/recurring_series_repository.py
"""Recurring Series Repository."""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.recurring_series import RecurringSeries, SeriesStatus
from .base_repository import BaseRepository


class RecurringSeriesRepository(BaseRepository[RecurringSeries]):
    def __init__(self, db: Session):
        super().__init__(db, RecurringSeries)

    def find_active_for_court_day(
        self, court_id: str, day_of_week: int, exclude_series_id: Optional[str] = None
    ) -> List[RecurringSeries]:
        """Active series on the court that repeat on the given weekday."""
        try:
            query = self.db.query(RecurringSeries).filter(
                RecurringSeries.court_id == court_id,
                RecurringSeries.day_of_week == day_of_week,
                RecurringSeries.status == SeriesStatus.ACTIVE,
            )
            if exclude_series_id:
                query = query.filter(RecurringSeries.id != exclude_series_id)
            return query.order_by(RecurringSeries.start_time).all()
        except SQLAlchemyError as e:
            raise self._storage_error("find active series", e) from e

    def find_active_for_court(self, court_id: str) -> List[RecurringSeries]:
        return self.find_by(court_id=court_id, status=SeriesStatus.ACTIVE)
