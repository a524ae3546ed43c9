"""
Notification dispatch seam.

Delivery (email, WhatsApp, push) lives outside this package. Services hand
events to a ``NotificationDispatcher`` after their transaction commits; a
dispatcher failure is logged and never reaches the caller.
"""

import logging
from typing import Protocol, Union

from ..events.reservation_events import ReservationCancelled, ReservationCreated

logger = logging.getLogger(__name__)

ReservationEvent = Union[ReservationCreated, ReservationCancelled]


class NotificationDispatcher(Protocol):
    def dispatch(self, event: ReservationEvent) -> None:
        ...


class LoggingNotificationDispatcher:
    """Default dispatcher: records the payload so an outbox reader can pick it up."""

    def dispatch(self, event: ReservationEvent) -> None:
        logger.info(
            f"Notification queued: {type(event).__name__}",
            extra={"event_type": type(event).__name__, "payload": event.to_dict()},
        )
