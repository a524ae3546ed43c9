"""
Checks shared by single reservations and recurring series.

All of these run before any state is read, so a malformed request never
takes a court lock.
"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple, Union

from ..core.exceptions import BusinessRuleException, ValidationException
from ..models.club import Court
from ..schemas.reservation import Caller, GuestDescriptor

MIN_GUEST_NAME_LENGTH = 2

_CENT = Decimal("0.01")


def to_money(value: Union[Decimal, int, float, str]) -> Decimal:
    return Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)


def require_aware(value: datetime, field_name: str) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValidationException(
            f"{field_name} must be timezone-aware",
            code="NAIVE_DATETIME",
            details={"field": field_name},
        )


def resolve_holder(
    caller: Caller,
    guest: Optional[GuestDescriptor],
    allow_guest_without_contact: bool = False,
) -> Tuple[Optional[str], Optional[GuestDescriptor]]:
    """
    Decide who the reservation belongs to.

    A guest descriptor wins over the caller's own identity (an admin booking
    on behalf of a walk-in). Without a guest, the caller must be a
    registered holder.
    """
    if guest is not None:
        if len(guest.name or "") < MIN_GUEST_NAME_LENGTH:
            raise ValidationException(
                "Guest name is required",
                code="GUEST_NAME_REQUIRED",
            )
        skip_contact = allow_guest_without_contact and caller.is_privileged
        if not guest.has_contact and not skip_contact:
            raise ValidationException(
                "Guest bookings need an email, phone or identity document",
                code="GUEST_CONTACT_REQUIRED",
            )
        return None, guest

    if not caller.holder_id:
        raise ValidationException(
            "A registered holder or a guest descriptor is required",
            code="HOLDER_REQUIRED",
        )
    return caller.holder_id, None


def guest_columns(guest: Optional[GuestDescriptor]) -> dict:
    if guest is None:
        return {}
    return {
        "guest_name": guest.name,
        "guest_email": guest.email,
        "guest_phone": guest.phone,
        "guest_document": guest.document,
    }


def validate_start(
    caller: Caller, start_at: datetime, now: datetime, booking_window_days: int
) -> None:
    require_aware(start_at, "start_at")
    if start_at < now:
        raise ValidationException(
            "Cannot book a time in the past",
            code="BOOKING_IN_PAST",
            details={"start_at": start_at.isoformat(), "now": now.isoformat()},
        )
    if caller.is_privileged:
        return
    if start_at > now + timedelta(days=booking_window_days):
        raise BusinessRuleException(
            f"Reservations can only be made up to {booking_window_days} days ahead",
            code="OUTSIDE_BOOKING_WINDOW",
            details={"booking_window_days": booking_window_days},
        )


def resolve_price(price: Optional[Union[Decimal, int, float, str]], court: Court) -> Decimal:
    """Explicit price if given, else the court's base price; must end up positive."""
    if price is None:
        price = court.base_price
    if price is None:
        raise ValidationException(
            "Price not configured for this court",
            code="PRICE_NOT_CONFIGURED",
            details={"court_id": court.id},
        )
    amount = to_money(price)
    if amount <= 0:
        raise ValidationException(
            "Price must be greater than zero",
            code="PRICE_NOT_CONFIGURED",
            details={"court_id": court.id, "price": str(amount)},
        )
    return amount


def require_positive_amount(amount: Union[Decimal, int, float, str], field_name: str) -> Decimal:
    value = to_money(amount)
    if value <= 0:
        raise ValidationException(
            f"{field_name} must be greater than zero",
            code="INVALID_AMOUNT",
            details={"field": field_name, "value": str(value)},
        )
    return value
