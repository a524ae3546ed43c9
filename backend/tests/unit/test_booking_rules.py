from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from clubreserve.core.enums import RoleName
from clubreserve.core.exceptions import BusinessRuleException, ValidationException
from clubreserve.schemas.reservation import Caller, GuestDescriptor
from clubreserve.services.booking_rules import (
    guest_columns,
    require_positive_amount,
    resolve_holder,
    resolve_price,
    to_money,
    validate_start,
)

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
MEMBER = Caller(holder_id="user-1", role=RoleName.MEMBER)
ADMIN = Caller(holder_id="admin-1", role=RoleName.ADMIN)


def test_registered_caller_holds_reservation() -> None:
    assert resolve_holder(MEMBER, None) == ("user-1", None)


def test_guest_wins_over_caller_identity() -> None:
    guest = GuestDescriptor(name="Laura", email="laura@example.com")
    holder_id, resolved = resolve_holder(ADMIN, guest)
    assert holder_id is None
    assert resolved is guest
    assert guest_columns(resolved)["guest_email"] == "laura@example.com"


def test_anonymous_caller_without_guest_is_rejected() -> None:
    with pytest.raises(ValidationException) as exc_info:
        resolve_holder(Caller(role=RoleName.GUEST), None)
    assert exc_info.value.code == "HOLDER_REQUIRED"


def test_guest_name_is_stripped_and_required() -> None:
    guest = GuestDescriptor(name="  A ", phone="123")
    assert guest.name == "A"
    with pytest.raises(ValidationException) as exc_info:
        resolve_holder(MEMBER, guest)
    assert exc_info.value.code == "GUEST_NAME_REQUIRED"


def test_blank_contact_fields_become_none() -> None:
    guest = GuestDescriptor(name="Laura", email="   ", phone="")
    assert guest.email is None
    assert guest.phone is None
    assert guest.has_contact is False


def test_guest_without_contact_needs_privileged_override() -> None:
    guest = GuestDescriptor(name="Laura")
    with pytest.raises(ValidationException) as exc_info:
        resolve_holder(MEMBER, guest, allow_guest_without_contact=True)
    assert exc_info.value.code == "GUEST_CONTACT_REQUIRED"

    with pytest.raises(ValidationException):
        resolve_holder(ADMIN, guest)

    assert resolve_holder(ADMIN, guest, allow_guest_without_contact=True) == (None, guest)


def test_past_start_fails_for_everyone() -> None:
    past = NOW - timedelta(minutes=1)
    for caller in (MEMBER, ADMIN):
        with pytest.raises(ValidationException) as exc_info:
            validate_start(caller, past, NOW, 30)
        assert exc_info.value.code == "BOOKING_IN_PAST"


def test_booking_window_applies_to_members_only() -> None:
    far = NOW + timedelta(days=31)
    with pytest.raises(BusinessRuleException) as exc_info:
        validate_start(MEMBER, far, NOW, 30)
    assert exc_info.value.code == "OUTSIDE_BOOKING_WINDOW"

    validate_start(ADMIN, far, NOW, 30)
    validate_start(MEMBER, NOW + timedelta(days=30), NOW, 30)


def test_naive_start_is_rejected() -> None:
    with pytest.raises(ValidationException) as exc_info:
        validate_start(MEMBER, datetime(2026, 3, 3, 10, 0), NOW, 30)
    assert exc_info.value.code == "NAIVE_DATETIME"


def test_price_falls_back_to_court_base_price() -> None:
    court = SimpleNamespace(id="c1", base_price=Decimal("100"))
    assert resolve_price(None, court) == Decimal("100.00")
    assert resolve_price("120.5", court) == Decimal("120.50")


@pytest.mark.parametrize("price,base", [(None, None), (0, Decimal("100")), ("-5", None)])
def test_unusable_price_is_rejected(price, base) -> None:
    court = SimpleNamespace(id="c1", base_price=base)
    with pytest.raises(ValidationException) as exc_info:
        resolve_price(price, court)
    assert exc_info.value.code == "PRICE_NOT_CONFIGURED"


def test_money_rounds_half_up_to_cents() -> None:
    assert to_money(10.005) == Decimal("10.01")
    assert to_money("3") == Decimal("3.00")


def test_amounts_must_be_positive() -> None:
    assert require_positive_amount("20", "amount") == Decimal("20.00")
    with pytest.raises(ValidationException) as exc_info:
        require_positive_amount(0, "amount")
    assert exc_info.value.code == "INVALID_AMOUNT"
