# backend/clubreserve/tasks/reservation_tasks.py
"""
Periodic reservation maintenance.
"""

import logging
from typing import Dict

from ..core.exceptions import TransientStorageException
from ..database import get_db_session
from ..services.reservation_service import ReservationService
from .celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(  # type: ignore[misc]
    name="reservations.complete_elapsed",
    autoretry_for=(TransientStorageException,),
)
def complete_elapsed_reservations() -> Dict[str, int]:
    """Mark every reservation that has already ended as COMPLETED."""
    with get_db_session() as db:
        completed = ReservationService(db).complete_elapsed_reservations()
    logger.info(f"Completion sweep finished: {completed} reservations completed")
    return {"completed": completed}
