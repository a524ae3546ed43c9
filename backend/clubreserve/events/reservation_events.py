"""Reservation domain events handed to the notification dispatcher."""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class ReservationCreated:
    """Fired after a reservation commit succeeds."""

    reservation_id: str
    holder_name: str
    court_id: str
    court_name: str
    local_date: str  # YYYY-MM-DD in the court's timezone
    local_time: str  # HH:mm in the court's timezone
    price: float
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReservationCancelled:
    reservation_id: str
    cancelled_by: Optional[str]
    cancelled_at: datetime
    refund_amount: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
