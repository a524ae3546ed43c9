# backend/clubreserve/repositories/catalog_repository.py
"""
Read-only access to clubs, courts and activity types.

Court and activity administration happens elsewhere; scheduling only needs
lookups.
"""

from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.club import ActivityType, Club, Court
from .base_repository import BaseRepository


class CatalogRepository(BaseRepository[Court]):
    def __init__(self, db: Session):
        super().__init__(db, Court)

    def get_court(self, court_id: str) -> Optional[Court]:
        return self.get_by_id(court_id, load_relationships=False)

    def get_activity(self, activity_id: str) -> Optional[ActivityType]:
        try:
            return self.db.get(ActivityType, activity_id)
        except SQLAlchemyError as e:
            raise self._storage_error("retrieve activity for", e) from e

    def get_club(self, club_id: str) -> Optional[Club]:
        try:
            return self.db.get(Club, club_id)
        except SQLAlchemyError as e:
            raise self._storage_error("retrieve club for", e) from e

    def list_courts(
        self, club_id: Optional[str] = None, court_ids: Optional[Sequence[str]] = None
    ) -> List[Court]:
        """Courts ordered by name, optionally limited to a club and/or an id list."""
        try:
            query = self.db.query(Court)
            if club_id:
                query = query.filter(Court.club_id == club_id)
            if court_ids is not None:
                query = query.filter(Court.id.in_(list(court_ids)))
            return query.order_by(Court.name).all()
        except SQLAlchemyError as e:
            raise self._storage_error("list", e) from e
