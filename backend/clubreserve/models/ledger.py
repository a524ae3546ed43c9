# backend/clubreserve/models/ledger.py
"""Append-only ledger of money coming in and going out."""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Numeric, String
import ulid

from ..database import Base
from .types import UTCDateTime, utc_now


class MovementType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class LedgerMovement(Base):
    __tablename__ = "ledger_movements"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    occurred_at = Column(UTCDateTime, nullable=False, default=utc_now)
    movement_type = Column(String(10), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(20), nullable=False)
    description = Column(String(255), nullable=False)
    reservation_id = Column(String(26), ForeignKey("reservations.id"), nullable=True, index=True)
    club_id = Column(String(26), ForeignKey("clubs.id"), nullable=True)

    __table_args__ = (
        CheckConstraint("movement_type IN ('INCOME', 'EXPENSE')", name="ck_ledger_movement_type"),
        CheckConstraint("amount >= 0", name="check_amount_non_negative"),
        Index("ix_ledger_movements_club_occurred", "club_id", "occurred_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerMovement {self.id}: {self.movement_type} {self.amount} "
            f"reservation={self.reservation_id}>"
        )

    @property
    def signed_amount(self):
        if self.movement_type == MovementType.INCOME:
            return self.amount
        if self.movement_type == MovementType.EXPENSE:
            return -self.amount
        raise ValueError(f"Unhandled movement type: {self.movement_type!r}")
