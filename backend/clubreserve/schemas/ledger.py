from datetime import date
from typing import List, Optional

from pydantic import Field

from .base import Money, StandardizedModel


class DailyLedgerSummary(StandardizedModel):
    day: date
    club_id: Optional[str] = None
    total_income: Money
    total_expense: Money
    balance: Money
    cash_income: Money
    non_cash_income: Money
    movement_count: int


class HolderBalance(StandardizedModel):
    holder_id: str
    total_debt: Money
    completed_count: int
    reservations_with_debt: int


class DebtorSummary(StandardizedModel):
    """Outstanding balance of one person across their reservations."""

    key: str
    holder_id: Optional[str] = None
    name: str
    phone: Optional[str] = None
    document: Optional[str] = None
    total_debt: Money
    reservation_ids: List[str] = Field(default_factory=list)
