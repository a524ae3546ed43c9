from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import ValidationError
import pytest

from clubreserve.core.enums import RoleName
from clubreserve.schemas import Caller, DailyLedgerSummary


def _summary(**amounts) -> DailyLedgerSummary:
    fields = dict(
        day=date(2026, 3, 2),
        total_income="0",
        total_expense="0",
        balance="0",
        cash_income="0",
        non_cash_income="0",
        movement_count=0,
    )
    fields.update(amounts)
    return DailyLedgerSummary(**fields)


def test_amounts_are_kept_to_cents() -> None:
    summary = _summary(total_income=0.1, balance="12.345", total_expense=Decimal("7"))
    assert summary.total_income == Decimal("0.10")
    assert summary.balance == Decimal("12.35")
    assert summary.model_dump(mode="json")["total_expense"] == "7.00"


@pytest.mark.parametrize("amount", ["twelve", "NaN", float("inf")])
def test_non_amounts_are_rejected(amount) -> None:
    with pytest.raises(ValidationError):
        _summary(total_income=amount)


def test_caller_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        Caller(holder_id="user-1", role=RoleName.MEMBER, club="norte")
