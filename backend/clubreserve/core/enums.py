# backend/clubreserve/core/enums.py
"""
Core enums shared across the reservation backend.

Roles come from the identity provider; payment methods come from whoever
records money against a reservation. Both are closed sets: consumers
branch over every member and raise on anything else.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles supplied by the identity provider for an authenticated caller."""

    ADMIN = "admin"
    MEMBER = "member"
    GUEST = "guest"

    @property
    def is_privileged(self) -> bool:
        if self is RoleName.ADMIN:
            return True
        if self is RoleName.MEMBER or self is RoleName.GUEST:
            return False
        raise ValueError(f"Unhandled role: {self!r}")


class PaymentMethod(str, Enum):
    """How money for a reservation is (or will be) collected."""

    CASH = "CASH"
    TRANSFER = "TRANSFER"
    CARD = "CARD"
    ON_ACCOUNT = "ON_ACCOUNT"  # deferred, nothing collected now

    @property
    def collects_now(self) -> bool:
        if self is PaymentMethod.ON_ACCOUNT:
            return False
        if self in (PaymentMethod.CASH, PaymentMethod.TRANSFER, PaymentMethod.CARD):
            return True
        raise ValueError(f"Unhandled payment method: {self!r}")

    @property
    def is_cash(self) -> bool:
        if self is PaymentMethod.CASH:
            return True
        if self in (PaymentMethod.TRANSFER, PaymentMethod.CARD, PaymentMethod.ON_ACCOUNT):
            return False
        raise ValueError(f"Unhandled payment method: {self!r}")
