from .reservation_events import ReservationCancelled, ReservationCreated

__all__ = ["ReservationCancelled", "ReservationCreated"]
