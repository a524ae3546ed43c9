# backend/clubreserve/services/reservation_service.py
"""
Reservation Service.

Handles the lifecycle of single reservations:

    PENDING -> CONFIRMED -> COMPLETED
    PENDING | CONFIRMED -> CANCELLED

Creation is one atomic unit per court: the court lock is taken, the overlap
set is re-read under that lock, and the row is inserted before the lock is
released at commit. Two overlapping requests for the same court therefore
never both succeed. Nothing in here retries; a caller that receives
``SlotConflictException`` or ``TransientStorageException`` decides what to
do next.
"""

from datetime import datetime, timedelta
from decimal import Decimal
import logging
from typing import Callable, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import PaymentMethod
from ..core.exceptions import (
    ActivityNotFoundException,
    BusinessRuleException,
    ForbiddenException,
    ReservationNotFoundException,
    ResourceNotFoundException,
    SlotConflictException,
    ValidationException,
)
from ..events.reservation_events import ReservationCancelled, ReservationCreated
from ..models.club import Court
from ..models.ledger import MovementType
from ..models.reservation import Reservation, ReservationStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..schemas.reservation import Caller, GuestDescriptor
from .base import BaseService, Clock
from .booking_rules import (
    guest_columns,
    resolve_holder,
    resolve_price,
    to_money,
    validate_start,
)
from .conflict_checker import ConflictChecker
from .ledger_service import LedgerService, derive_payment_status
from .notification_service import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    ReservationEvent,
)
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)


class ReservationService(BaseService):
    """
    Service layer for reservation operations.

    Centralizes the booking rules (time window, guest data, maintenance),
    the atomic check-then-insert, and the ledger side effects of
    confirmation and cancellation.
    """

    def __init__(
        self,
        db: Session,
        notification_dispatcher: Optional[NotificationDispatcher] = None,
        clock: Optional[Clock] = None,
        booking_window_days: Optional[int] = None,
        default_timezone: Optional[str] = None,
    ):
        super().__init__(db, clock)
        self.repository = RepositoryFactory.create_reservation_repository(db)
        self.catalog_repository = RepositoryFactory.create_catalog_repository(db)
        self.conflict_checker = ConflictChecker(db, repository=self.repository, clock=self.clock)
        self.ledger_service = LedgerService(db, clock=self.clock, default_timezone=default_timezone)
        self.notification_dispatcher = notification_dispatcher or LoggingNotificationDispatcher()
        self.booking_window_days = booking_window_days or settings.booking_window_days
        self.default_timezone = default_timezone or settings.default_timezone

    @BaseService.measure_operation("create_reservation")
    def create_reservation(
        self,
        caller: Caller,
        court_id: str,
        activity_id: str,
        start_at: datetime,
        guest: Optional[GuestDescriptor] = None,
        price: Optional[Union[Decimal, int, float, str]] = None,
        allow_guest_without_contact: bool = False,
    ) -> Reservation:
        """
        Create a PENDING reservation if the interval is free on the court.

        Raises:
            ValidationException: Past start, missing holder/guest data, bad price
            BusinessRuleException: Outside the booking window, court under maintenance
            ResourceNotFoundException / ActivityNotFoundException: Unknown ids
            SlotConflictException: An active reservation overlaps the interval
            TransientStorageException: Storage unavailable or lock wait timed out
        """
        holder_id, guest = resolve_holder(caller, guest, allow_guest_without_contact)
        validate_start(caller, start_at, self.now(), self.booking_window_days)

        with self.transaction():
            court = self.repository.lock_court(court_id)
            if court is None:
                raise ResourceNotFoundException(court_id)
            activity = self.catalog_repository.get_activity(activity_id)
            if activity is None:
                raise ActivityNotFoundException(activity_id)
            if court.is_under_maintenance:
                raise BusinessRuleException(
                    "Court is under maintenance",
                    code="COURT_UNDER_MAINTENANCE",
                    details={"court_id": court_id},
                )
            amount = resolve_price(price, court)

            end_at = start_at + timedelta(minutes=activity.default_duration_minutes)
            conflicts = self.conflict_checker.find_reservation_conflicts(court.id, start_at, end_at)
            if conflicts:
                prometheus_metrics.inc_slot_conflict("booking")
                raise SlotConflictException(
                    details={
                        "court_id": court.id,
                        "start_at": start_at.isoformat(),
                        "end_at": end_at.isoformat(),
                        "conflicting_reservation_ids": [r.id for r in conflicts],
                    }
                )

            reservation = self.repository.create(
                court_id=court.id,
                activity_id=activity.id,
                start_at=start_at,
                duration_minutes=activity.default_duration_minutes,
                price=amount,
                status=ReservationStatus.PENDING,
                payment_status=derive_payment_status(amount, Decimal("0")),
                holder_id=holder_id,
                **guest_columns(guest),
            )

        self.logger.info(
            f"Reservation {reservation.id} created on court {court.id}",
            extra={
                "reservation_id": reservation.id,
                "court_id": court.id,
                "start_at": start_at.isoformat(),
            },
        )
        self._dispatch(reservation.id, lambda: self._created_event(reservation, court))
        return reservation

    @BaseService.measure_operation("confirm_reservation")
    def confirm_reservation(
        self, reservation_id: str, payment_method: Union[PaymentMethod, str]
    ) -> Reservation:
        """
        Confirm a PENDING reservation.

        Unless the method is ON_ACCOUNT, the price is collected now and an
        income movement is appended in the same transaction.
        """
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationException(
                f"Unknown payment method: {payment_method}",
                code="INVALID_PAYMENT_METHOD",
            )

        with self.transaction():
            reservation = self._get_or_raise(reservation_id)
            if reservation.status != ReservationStatus.PENDING:
                current = ReservationStatus(reservation.status).value
                raise BusinessRuleException(
                    f"Cannot confirm a reservation in status {current}",
                    code="INVALID_STATUS_TRANSITION",
                    details={"reservation_id": reservation_id, "status": current},
                )
            reservation.confirm(method, self.now())
            if method.collects_now and reservation.price > 0:
                self.ledger_service.append_movement(
                    MovementType.INCOME,
                    reservation.price,
                    method,
                    f"Reservation {reservation.id}",
                    reservation=reservation,
                )
            self.ledger_service.refresh_payment_status(reservation)

        return reservation

    @BaseService.measure_operation("cancel_reservation")
    def cancel_reservation(
        self,
        reservation_id: str,
        actor_id: Optional[str] = None,
        club_scope_id: Optional[str] = None,
    ) -> Reservation:
        """
        Cancel a PENDING or CONFIRMED reservation.

        A confirmed reservation gets an offsetting expense movement for its
        price, capped at what was collected for it, so a booking confirmed
        ON_ACCOUNT and never paid refunds nothing. That append is
        best-effort: if it fails it is logged and the cancellation still
        commits.
        """
        refund: Optional[Decimal] = None
        with self.transaction():
            reservation = self._get_or_raise(reservation_id)
            if club_scope_id is not None and reservation.court.club_id != club_scope_id:
                raise ForbiddenException(
                    "Reservation belongs to another club",
                    code="CLUB_SCOPE_MISMATCH",
                    details={"reservation_id": reservation_id},
                )
            if not reservation.is_cancellable():
                current = ReservationStatus(reservation.status).value
                raise BusinessRuleException(
                    f"Cannot cancel a reservation in status {current}",
                    code="INVALID_STATUS_TRANSITION",
                    details={"reservation_id": reservation_id, "status": current},
                )

            if reservation.status == ReservationStatus.CONFIRMED:
                # Only money actually collected is given back
                _, collected = self.ledger_service.reservation_totals(reservation)
                amount = min(to_money(reservation.price), collected)
                if amount > 0:
                    with self.best_effort(
                        "record cancellation refund", reservation_id=reservation.id
                    ):
                        self.ledger_service.append_movement(
                            MovementType.EXPENSE,
                            amount,
                            self._refund_method(reservation),
                            f"Refund for cancelled reservation {reservation.id}",
                            reservation=reservation,
                        )
                        refund = amount

            now = self.now()
            reservation.cancel(actor_id, now)
            self.repository.flush()

        self._dispatch(
            reservation.id,
            lambda: ReservationCancelled(
                reservation_id=reservation.id,
                cancelled_by=actor_id,
                cancelled_at=now,
                refund_amount=float(refund) if refund is not None else None,
            ),
        )
        return reservation

    @BaseService.measure_operation("complete_elapsed_reservations")
    def complete_elapsed_reservations(self, now: Optional[datetime] = None) -> int:
        """
        Move every PENDING/CONFIRMED reservation whose end has passed to COMPLETED.

        Pure status flip with no ledger effect; running it twice is harmless.
        """
        cutoff = now or self.now()
        with self.transaction():
            count = self.repository.complete_elapsed(cutoff)
        prometheus_metrics.inc_completed(count)
        if count:
            self.logger.info(f"Completed {count} elapsed reservations", extra={"count": count})
        return count

    def get_reservation(self, reservation_id: str) -> Reservation:
        return self._get_or_raise(reservation_id)

    def list_holder_reservations(self, holder_id: str, limit: int = 100) -> List[Reservation]:
        return self.repository.find_by_holder(holder_id, limit=limit)

    def _get_or_raise(self, reservation_id: str) -> Reservation:
        reservation = self.repository.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundException(reservation_id)
        return reservation

    @staticmethod
    def _refund_method(reservation: Reservation) -> PaymentMethod:
        method = PaymentMethod(reservation.payment_method or PaymentMethod.CASH)
        return method if method.collects_now else PaymentMethod.CASH

    def _created_event(self, reservation: Reservation, court: Court) -> ReservationCreated:
        tz = TimezoneService.get_timezone(court.timezone, self.default_timezone)
        local_date, local_time = TimezoneService.format_local(reservation.start_at, tz)
        return ReservationCreated(
            reservation_id=reservation.id,
            holder_name=reservation.display_name,
            court_id=court.id,
            court_name=court.name,
            local_date=local_date,
            local_time=local_time,
            price=float(reservation.price),
            guest_email=reservation.guest_email,
            guest_phone=reservation.guest_phone,
        )

    def _dispatch(self, reservation_id: str, build_event: Callable[[], ReservationEvent]) -> None:
        """Hand an event to the dispatcher after commit; failures never reach the caller."""
        try:
            self.notification_dispatcher.dispatch(build_event())
            prometheus_metrics.record_notification_outcome("success")
        except Exception as e:
            prometheus_metrics.record_notification_outcome("error")
            self.logger.error(
                f"Notification dispatch failed for reservation {reservation_id}: {str(e)}",
                exc_info=True,
                extra={"reservation_id": reservation_id},
            )
