from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from clubreserve.models import Reservation, ReservationStatus
from clubreserve.repositories import RepositoryFactory
from clubreserve.tasks import reservation_tasks
from clubreserve.tasks.beat_schedule import get_beat_schedule
from clubreserve.tasks.celery_app import celery_app


def test_completion_sweep_task(monkeypatch, db, session_factory, court, activity) -> None:
    repo = RepositoryFactory.create_reservation_repository(db)
    finished = repo.create(
        court_id=court.id,
        activity_id=activity.id,
        start_at=datetime.now(timezone.utc) - timedelta(days=2),
        duration_minutes=90,
        price=Decimal("100.00"),
        holder_id="user-1",
    )
    db.commit()

    @contextmanager
    def _session_scope():
        session = session_factory()
        try:
            yield session
            session.commit()
        finally:
            session.close()

    monkeypatch.setattr(reservation_tasks, "get_db_session", _session_scope)

    assert reservation_tasks.complete_elapsed_reservations() == {"completed": 1}

    db.expire_all()
    assert db.get(Reservation, finished.id).status == ReservationStatus.COMPLETED


def test_sweep_is_scheduled() -> None:
    entry = get_beat_schedule()["complete-elapsed-reservations"]
    assert entry["task"] == "reservations.complete_elapsed"
    assert entry["schedule"] == timedelta(seconds=300)
    assert "complete-elapsed-reservations" in celery_app.conf.beat_schedule
    assert "reservations.complete_elapsed" in celery_app.tasks
