# backend/clubreserve/tasks/beat_schedule.py
"""
Celery Beat schedule for the reservation backend.
"""

from datetime import timedelta
from typing import Any, Dict

from ..core.config import settings


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    return {
        # Flip PENDING/CONFIRMED reservations whose end has passed to COMPLETED
        "complete-elapsed-reservations": {
            "task": "reservations.complete_elapsed",
            "schedule": timedelta(seconds=settings.completion_sweep_interval_seconds),
            "options": {"expires": settings.completion_sweep_interval_seconds},
        },
    }
