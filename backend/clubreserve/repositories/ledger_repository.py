# backend/clubreserve/repositories/ledger_repository.py
"""
Ledger Repository.

The ledger is append-only: this repository can insert and query
movements but exposes no update or delete.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.ledger import LedgerMovement, MovementType
from .base_repository import BaseRepository


class LedgerRepository(BaseRepository[LedgerMovement]):
    def __init__(self, db: Session):
        super().__init__(db, LedgerMovement)

    def insert(self, **kwargs) -> LedgerMovement:
        return self.create(**kwargs)

    def delete(self, id: str) -> bool:
        raise NotImplementedError("Ledger movements are append-only")

    def query_by_date_range(
        self, start: datetime, end: datetime, club_id: Optional[str] = None
    ) -> List[LedgerMovement]:
        """Movements with ``start <= occurred_at < end``, oldest first."""
        try:
            query = self.db.query(LedgerMovement).filter(
                LedgerMovement.occurred_at >= start,
                LedgerMovement.occurred_at < end,
            )
            if club_id:
                query = query.filter(LedgerMovement.club_id == club_id)
            return query.order_by(LedgerMovement.occurred_at).all()
        except SQLAlchemyError as e:
            raise self._storage_error("query movements in range", e) from e

    def by_reservation(self, reservation_id: str) -> List[LedgerMovement]:
        try:
            return (
                self.db.query(LedgerMovement)
                .filter(LedgerMovement.reservation_id == reservation_id)
                .order_by(LedgerMovement.occurred_at)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("query movements of reservation", e) from e

    def sum_for_reservation(self, reservation_id: str, movement_type: MovementType) -> Decimal:
        try:
            total = (
                self.db.query(func.coalesce(func.sum(LedgerMovement.amount), 0))
                .filter(
                    LedgerMovement.reservation_id == reservation_id,
                    LedgerMovement.movement_type == movement_type,
                )
                .scalar()
            )
            return Decimal(str(total))
        except SQLAlchemyError as e:
            raise self._storage_error("sum movements of reservation", e) from e
