# backend/clubreserve/services/ledger_service.py
"""
Ledger Service.

Owns the append-only ledger and the payment status derived from it.

A reservation's stored ``payment_status`` is a cache of
``derive_payment_status(price + charges, income)`` and is refreshed after
every charge or payment change. Nothing else writes it.
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
import logging
from typing import Dict, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import PaymentMethod
from ..core.exceptions import (
    BusinessRuleException,
    NotFoundException,
    ReservationNotFoundException,
    ValidationException,
)
from ..models.ledger import LedgerMovement, MovementType
from ..models.reservation import PaymentStatus, Reservation, ReservationStatus
from ..repositories import RepositoryFactory
from ..schemas.ledger import DailyLedgerSummary, DebtorSummary, HolderBalance
from .base import BaseService, Clock
from .booking_rules import require_positive_amount, to_money
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

Amount = Union[Decimal, int, float, str]


def derive_payment_status(total: Decimal, collected: Decimal) -> PaymentStatus:
    """PAID once nothing remains, PARTIAL if some money came in, else DEBT."""
    remaining = total - collected
    if remaining <= 0:
        return PaymentStatus.PAID
    if collected > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.DEBT


def _coerce_method(payment_method: Union[PaymentMethod, str]) -> PaymentMethod:
    try:
        return PaymentMethod(payment_method)
    except ValueError:
        raise ValidationException(
            f"Unknown payment method: {payment_method}",
            code="INVALID_PAYMENT_METHOD",
        )


class LedgerService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        default_timezone: Optional[str] = None,
    ):
        super().__init__(db, clock)
        self.repository = RepositoryFactory.create_ledger_repository(db)
        self.reservation_repository = RepositoryFactory.create_reservation_repository(db)
        self.default_timezone = default_timezone or settings.default_timezone

    # Building blocks used inside other services' transactions

    def append_movement(
        self,
        movement_type: MovementType,
        amount: Amount,
        payment_method: PaymentMethod,
        description: str,
        reservation: Optional[Reservation] = None,
        club_id: Optional[str] = None,
    ) -> LedgerMovement:
        """Append one movement. Does not commit."""
        value = to_money(amount)
        if value < 0:
            raise ValidationException("Ledger amounts cannot be negative", code="INVALID_AMOUNT")
        if reservation is not None and club_id is None and reservation.court is not None:
            club_id = reservation.court.club_id
        movement = self.repository.insert(
            occurred_at=self.now(),
            movement_type=movement_type,
            amount=value,
            payment_method=payment_method.value,
            description=description,
            reservation_id=reservation.id if reservation is not None else None,
            club_id=club_id,
        )
        self.logger.info(
            f"Ledger {movement_type.value} of {value} recorded",
            extra={
                "movement_id": movement.id,
                "reservation_id": movement.reservation_id,
                "payment_method": payment_method.value,
            },
        )
        return movement

    def reservation_totals(self, reservation: Reservation) -> Tuple[Decimal, Decimal]:
        """(amount owed, amount collected) for a reservation."""
        charges = self.reservation_repository.sum_charges(reservation.id)
        total = to_money(reservation.price) + charges
        collected = self.repository.sum_for_reservation(reservation.id, MovementType.INCOME)
        return to_money(total), to_money(collected)

    def refresh_payment_status(self, reservation: Reservation) -> PaymentStatus:
        """Recompute and store the cached payment status. Does not commit."""
        total, collected = self.reservation_totals(reservation)
        status = derive_payment_status(total, collected)
        previous = PaymentStatus(reservation.payment_status)
        if previous != status:
            self.logger.debug(
                f"Reservation {reservation.id} payment status {previous.value} -> {status.value}"
            )
        reservation.payment_status = status
        self.reservation_repository.flush()
        return status

    def _get_open_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.reservation_repository.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundException(reservation_id)
        if reservation.status == ReservationStatus.CANCELLED:
            raise BusinessRuleException(
                "Cancelled reservations cannot take charges or payments",
                code="RESERVATION_CANCELLED",
                details={"reservation_id": reservation_id},
            )
        return reservation

    # Public operations

    @BaseService.measure_operation("recompute_payment_status")
    def recompute_payment_status(self, reservation_id: str) -> PaymentStatus:
        with self.transaction():
            reservation = self.reservation_repository.get_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFoundException(reservation_id)
            return self.refresh_payment_status(reservation)

    @BaseService.measure_operation("add_incidental_charge")
    def add_incidental_charge(
        self,
        reservation_id: str,
        amount: Amount,
        is_deferred: bool,
        description: str = "Incidental charge",
        payment_method: Optional[Union[PaymentMethod, str]] = None,
    ) -> PaymentStatus:
        """
        Add an extra charge to a reservation and return the refreshed status.

        A deferred charge only raises what is owed. Otherwise the charge is
        paid on the spot and a matching income movement is appended; that
        append is best-effort and a failure leaves the charge owed.
        """
        value = require_positive_amount(amount, "amount")
        if is_deferred:
            method = PaymentMethod.ON_ACCOUNT
        else:
            method = _coerce_method(payment_method or PaymentMethod.CASH)
            if not method.collects_now:
                raise ValidationException(
                    "A charge paid now needs a collecting payment method",
                    code="INVALID_PAYMENT_METHOD",
                )

        with self.transaction():
            reservation = self._get_open_reservation(reservation_id)
            charge = self.reservation_repository.add_charge(
                reservation_id=reservation.id,
                description=description,
                amount=value,
                payment_method=method.value,
            )
            if not is_deferred:
                with self.best_effort(
                    "record incidental charge payment",
                    reservation_id=reservation.id,
                    charge_id=charge.id,
                ):
                    self.append_movement(
                        MovementType.INCOME,
                        value,
                        method,
                        f"Charge: {description}",
                        reservation=reservation,
                    )
            return self.refresh_payment_status(reservation)

    @BaseService.measure_operation("remove_incidental_charge")
    def remove_incidental_charge(self, charge_id: str) -> PaymentStatus:
        """
        Drop a charge from a reservation and return the refreshed status.

        A charge that was paid on the spot is given back as a best-effort
        expense movement.
        """
        with self.transaction():
            charge = self.reservation_repository.get_charge(charge_id)
            if charge is None:
                raise NotFoundException(
                    "Charge not found", code="CHARGE_NOT_FOUND", details={"charge_id": charge_id}
                )
            reservation = self._get_open_reservation(charge.reservation_id)
            if not charge.is_deferred:
                with self.best_effort(
                    "refund removed charge", reservation_id=reservation.id, charge_id=charge.id
                ):
                    self.append_movement(
                        MovementType.EXPENSE,
                        charge.amount,
                        PaymentMethod(charge.payment_method),
                        f"Refund: {charge.description}",
                        reservation=reservation,
                    )
            self.reservation_repository.delete_charge(charge)
            return self.refresh_payment_status(reservation)

    @BaseService.measure_operation("record_payment")
    def record_payment(
        self,
        reservation_id: str,
        amount: Amount,
        payment_method: Union[PaymentMethod, str],
        description: Optional[str] = None,
    ) -> PaymentStatus:
        """Record money received for a reservation (deposit or partial payment)."""
        value = require_positive_amount(amount, "amount")
        method = _coerce_method(payment_method)
        if not method.collects_now:
            raise ValidationException(
                "Payments must use a collecting payment method",
                code="INVALID_PAYMENT_METHOD",
            )
        with self.transaction():
            reservation = self._get_open_reservation(reservation_id)
            self.append_movement(
                MovementType.INCOME,
                value,
                method,
                description or f"Payment for reservation {reservation.id}",
                reservation=reservation,
            )
            return self.refresh_payment_status(reservation)

    @BaseService.measure_operation("settle_balance")
    def settle_balance(
        self, reservation_id: str, payment_method: Union[PaymentMethod, str]
    ) -> PaymentStatus:
        """Collect exactly what is still owed on a reservation."""
        method = _coerce_method(payment_method)
        if not method.collects_now:
            raise ValidationException(
                "Settling a balance needs a collecting payment method",
                code="INVALID_PAYMENT_METHOD",
            )
        with self.transaction():
            reservation = self._get_open_reservation(reservation_id)
            total, collected = self.reservation_totals(reservation)
            remaining = total - collected
            if remaining <= 0:
                raise BusinessRuleException(
                    "This reservation is already paid",
                    code="ALREADY_PAID",
                    details={"reservation_id": reservation_id},
                )
            self.append_movement(
                MovementType.INCOME,
                remaining,
                method,
                f"Balance settlement for reservation {reservation.id}",
                reservation=reservation,
            )
            return self.refresh_payment_status(reservation)

    @BaseService.measure_operation("daily_summary")
    def daily_summary(
        self,
        local_date: date,
        club_id: Optional[str] = None,
        timezone_name: Optional[str] = None,
    ) -> DailyLedgerSummary:
        """Income, expense and cash split over one local calendar day."""
        tz = TimezoneService.get_timezone(timezone_name, self.default_timezone)
        start, end = TimezoneService.local_day_range(local_date, tz)
        movements = self.repository.query_by_date_range(start, end, club_id)

        income = expense = cash_income = Decimal("0")
        for movement in movements:
            amount = to_money(movement.amount)
            if movement.movement_type == MovementType.INCOME:
                income += amount
                if PaymentMethod(movement.payment_method).is_cash:
                    cash_income += amount
            elif movement.movement_type == MovementType.EXPENSE:
                expense += amount
            else:
                raise ValueError(f"Unhandled movement type: {movement.movement_type!r}")

        return DailyLedgerSummary(
            day=local_date,
            club_id=club_id,
            total_income=income,
            total_expense=expense,
            balance=income - expense,
            cash_income=cash_income,
            non_cash_income=income - cash_income,
            movement_count=len(movements),
        )

    @BaseService.measure_operation("holder_balance")
    def holder_balance(self, holder_id: str) -> HolderBalance:
        owing = self.reservation_repository.find_with_balance(holder_id=holder_id)
        total_debt = Decimal("0")
        with_debt = 0
        for reservation in owing:
            total, collected = self.reservation_totals(reservation)
            if total > collected:
                total_debt += total - collected
                with_debt += 1
        return HolderBalance(
            holder_id=holder_id,
            total_debt=total_debt,
            completed_count=self.reservation_repository.count_completed_for_holder(holder_id),
            reservations_with_debt=with_debt,
        )

    @BaseService.measure_operation("list_debtors")
    def list_debtors(self, club_id: str) -> List[DebtorSummary]:
        """
        Outstanding balances in a club grouped per person, largest first.

        Guests have no account, so they are grouped by identity document,
        then phone, then name.
        """
        groups: Dict[str, DebtorSummary] = OrderedDict()
        for reservation in self.reservation_repository.find_with_balance(club_id=club_id):
            total, collected = self.reservation_totals(reservation)
            remaining = total - collected
            if remaining <= 0:
                continue

            key = self._debtor_key(reservation)
            summary = groups.get(key)
            if summary is None:
                summary = DebtorSummary(
                    key=key,
                    holder_id=reservation.holder_id,
                    name=reservation.display_name,
                    phone=reservation.guest_phone,
                    document=reservation.guest_document,
                    total_debt=Decimal("0"),
                )
                groups[key] = summary
            summary.total_debt = summary.total_debt + remaining
            summary.reservation_ids.append(reservation.id)

        return sorted(groups.values(), key=lambda s: s.total_debt, reverse=True)

    @staticmethod
    def _debtor_key(reservation: Reservation) -> str:
        if reservation.holder_id:
            return f"holder:{reservation.holder_id}"
        if reservation.guest_document:
            return f"document:{reservation.guest_document}"
        if reservation.guest_phone:
            return f"phone:{reservation.guest_phone}"
        return f"name:{(reservation.guest_name or '').strip().lower()}"
