# backend/clubreserve/repositories/reservation_repository.py
"""
Reservation Repository.

Data access for reservations and their incidental charges: overlap
candidates, court locking for the atomic check-then-insert unit, range
queries for availability, and bulk status transitions for series
cancellation and the completion sweep.
"""

from datetime import datetime
from decimal import Decimal
import logging
from typing import List, Optional, Sequence

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.overlap import overlap_clause
from ..models.club import Court
from ..models.reservation import (
    ACTIVE_STATUSES,
    IncidentalCharge,
    PaymentStatus,
    Reservation,
    ReservationStatus,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ReservationRepository(BaseRepository[Reservation]):
    def __init__(self, db: Session):
        super().__init__(db, Reservation)

    def _apply_eager_loading(self, query):
        return query.options(joinedload(Reservation.court), joinedload(Reservation.activity))

    def lock_court(self, court_id: str) -> Optional[Court]:
        """
        Take the court's write lock for the rest of the current transaction.

        PostgreSQL locks the court row. SQLite already holds the database
        write lock because every transaction begins IMMEDIATE, so a plain
        read is enough there.
        """
        try:
            query = self.db.query(Court).filter(Court.id == court_id)
            if self.dialect_name == "postgresql":
                query = query.with_for_update()
            return query.one_or_none()
        except SQLAlchemyError as e:
            raise self._storage_error("lock court for", e) from e

    def find_overlapping(
        self,
        court_id: str,
        start_at: datetime,
        end_at: datetime,
        exclude_reservation_id: Optional[str] = None,
    ) -> List[Reservation]:
        """Non-cancelled reservations on the court whose interval overlaps [start_at, end_at)."""
        try:
            query = self.db.query(Reservation).filter(
                Reservation.court_id == court_id,
                Reservation.status != ReservationStatus.CANCELLED,
                overlap_clause(Reservation.start_at, Reservation.end_at, start_at, end_at),
            )
            if exclude_reservation_id:
                query = query.filter(Reservation.id != exclude_reservation_id)
            return query.order_by(Reservation.start_at).all()
        except SQLAlchemyError as e:
            raise self._storage_error("find overlapping", e) from e

    def find_for_courts_in_range(
        self, court_ids: Sequence[str], range_start: datetime, range_end: datetime
    ) -> List[Reservation]:
        """Non-cancelled reservations on any of the courts touching [range_start, range_end)."""
        if not court_ids:
            return []
        try:
            return (
                self.db.query(Reservation)
                .filter(
                    Reservation.court_id.in_(list(court_ids)),
                    Reservation.status != ReservationStatus.CANCELLED,
                    overlap_clause(
                        Reservation.start_at, Reservation.end_at, range_start, range_end
                    ),
                )
                .order_by(Reservation.start_at)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("find in range", e) from e

    def find_by_series(self, series_id: str) -> List[Reservation]:
        try:
            return (
                self.db.query(Reservation)
                .filter(Reservation.series_id == series_id)
                .order_by(Reservation.start_at)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("find series occurrences", e) from e

    def find_by_holder(self, holder_id: str, limit: int = 100) -> List[Reservation]:
        try:
            return (
                self.db.query(Reservation)
                .filter(Reservation.holder_id == holder_id)
                .order_by(Reservation.start_at.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("find holder history", e) from e

    def find_with_balance(
        self, club_id: Optional[str] = None, holder_id: Optional[str] = None
    ) -> List[Reservation]:
        """Non-cancelled reservations whose cached payment status says money is owed."""
        try:
            query = self.db.query(Reservation).filter(
                Reservation.status != ReservationStatus.CANCELLED,
                Reservation.payment_status.in_([PaymentStatus.DEBT, PaymentStatus.PARTIAL]),
            )
            if club_id:
                query = query.join(Court, Court.id == Reservation.court_id).filter(
                    Court.club_id == club_id
                )
            if holder_id:
                query = query.filter(Reservation.holder_id == holder_id)
            return query.order_by(Reservation.start_at).all()
        except SQLAlchemyError as e:
            raise self._storage_error("find outstanding balances", e) from e

    def count_completed_for_holder(self, holder_id: str) -> int:
        return self.count(holder_id=holder_id, status=ReservationStatus.COMPLETED)

    def cancel_future_occurrences(
        self, series_id: str, now: datetime, cancelled_by_id: Optional[str]
    ) -> int:
        """Cancel every not-yet-started active occurrence of a series."""
        try:
            result = self.db.execute(
                update(Reservation)
                .where(
                    Reservation.series_id == series_id,
                    Reservation.start_at >= now,
                    Reservation.status.in_(ACTIVE_STATUSES),
                )
                .values(
                    status=ReservationStatus.CANCELLED,
                    cancelled_at=now,
                    cancelled_by_id=cancelled_by_id,
                )
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            raise self._storage_error("cancel occurrences of", e) from e

    def complete_elapsed(self, now: datetime) -> int:
        """Flip active reservations whose end instant has passed to COMPLETED."""
        try:
            result = self.db.execute(
                update(Reservation)
                .where(
                    Reservation.status.in_(ACTIVE_STATUSES),
                    Reservation.end_at <= now,
                )
                .values(status=ReservationStatus.COMPLETED, completed_at=now)
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            raise self._storage_error("complete elapsed", e) from e

    # Incidental charges

    def get_charge(self, charge_id: str) -> Optional[IncidentalCharge]:
        try:
            return self.db.get(IncidentalCharge, charge_id)
        except SQLAlchemyError as e:
            raise self._storage_error("retrieve charge for", e) from e

    def add_charge(self, **kwargs) -> IncidentalCharge:
        try:
            charge = IncidentalCharge(**kwargs)
            self.db.add(charge)
            self.db.flush()
            return charge
        except SQLAlchemyError as e:
            raise self._storage_error("add charge to", e) from e

    def delete_charge(self, charge: IncidentalCharge) -> None:
        try:
            self.db.delete(charge)
            self.db.flush()
        except SQLAlchemyError as e:
            raise self._storage_error("delete charge of", e) from e

    def list_charges(self, reservation_id: str) -> List[IncidentalCharge]:
        try:
            return (
                self.db.query(IncidentalCharge)
                .filter(IncidentalCharge.reservation_id == reservation_id)
                .order_by(IncidentalCharge.created_at)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._storage_error("list charges of", e) from e

    def sum_charges(self, reservation_id: str) -> Decimal:
        try:
            total = (
                self.db.query(func.coalesce(func.sum(IncidentalCharge.amount), 0))
                .filter(IncidentalCharge.reservation_id == reservation_id)
                .scalar()
            )
            return Decimal(str(total))
        except SQLAlchemyError as e:
            raise self._storage_error("sum charges of", e) from e
