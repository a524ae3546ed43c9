from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.exc import IntegrityError, OperationalError

from clubreserve.core.exceptions import RepositoryException, TransientStorageException
from clubreserve.models import ReservationStatus
from clubreserve.repositories import RepositoryFactory

START = datetime(2026, 3, 3, 10, 0, tzinfo=timezone.utc)


def _book(repo, court, activity, start, **overrides):
    fields = dict(
        court_id=court.id,
        activity_id=activity.id,
        start_at=start,
        duration_minutes=activity.default_duration_minutes,
        price=Decimal("100.00"),
        holder_id="user-1",
    )
    fields.update(overrides)
    return repo.create(**fields)


def test_find_overlapping_ignores_cancelled_and_touching(db, court, activity) -> None:
    repo = RepositoryFactory.create_reservation_repository(db)
    hit = _book(repo, court, activity, START)
    _book(repo, court, activity, START + timedelta(minutes=90))  # touches the probe end
    _book(repo, court, activity, START, status=ReservationStatus.CANCELLED)
    db.commit()

    found = repo.find_overlapping(
        court.id, START - timedelta(minutes=30), START + timedelta(minutes=90)
    )
    assert [r.id for r in found] == [hit.id]
    assert repo.find_overlapping(court.id, START, START + timedelta(minutes=90), hit.id) == []


def test_find_overlapping_is_scoped_to_court(db, court, second_court, activity) -> None:
    repo = RepositoryFactory.create_reservation_repository(db)
    _book(repo, second_court, activity, START)
    db.commit()
    assert repo.find_overlapping(court.id, START, START + timedelta(minutes=90)) == []


def test_find_for_courts_in_range(db, court, second_court, activity) -> None:
    repo = RepositoryFactory.create_reservation_repository(db)
    first = _book(repo, court, activity, START)
    second = _book(repo, second_court, activity, START + timedelta(hours=3))
    _book(repo, court, activity, START + timedelta(days=2))
    db.commit()

    day_end = START + timedelta(hours=14)
    found = repo.find_for_courts_in_range([court.id, second_court.id], START, day_end)
    assert [r.id for r in found] == [first.id, second.id]
    assert repo.find_for_courts_in_range([], START, day_end) == []


def test_lock_court_returns_court(db, court) -> None:
    repo = RepositoryFactory.create_reservation_repository(db)
    assert repo.lock_court(court.id).id == court.id
    assert repo.lock_court("missing") is None


def test_complete_elapsed_only_touches_finished_active_rows(db, court, activity) -> None:
    repo = RepositoryFactory.create_reservation_repository(db)
    done = _book(repo, court, activity, START)
    running = _book(repo, court, activity, START + timedelta(minutes=90))
    cancelled = _book(
        repo, court, activity, START - timedelta(days=1), status=ReservationStatus.CANCELLED
    )
    db.commit()

    count = repo.complete_elapsed(START + timedelta(minutes=100))
    db.commit()

    assert count == 1
    assert done.status == ReservationStatus.COMPLETED
    assert running.status == ReservationStatus.PENDING
    assert cancelled.status == ReservationStatus.CANCELLED


def test_charges(db, court, activity) -> None:
    repo = RepositoryFactory.create_reservation_repository(db)
    reservation = _book(repo, court, activity, START)
    assert repo.sum_charges(reservation.id) == Decimal("0")

    repo.add_charge(
        reservation_id=reservation.id,
        description="Balls",
        amount=Decimal("5.50"),
        payment_method="CASH",
    )
    deferred = repo.add_charge(
        reservation_id=reservation.id,
        description="Drinks",
        amount=Decimal("4.50"),
        payment_method="ON_ACCOUNT",
    )
    db.commit()

    assert Decimal(repo.sum_charges(reservation.id)) == Decimal("10")
    assert len(repo.list_charges(reservation.id)) == 2
    assert deferred.is_deferred is True

    repo.delete_charge(deferred)
    db.commit()
    assert repo.get_charge(deferred.id) is None


def test_storage_errors_are_classified(db) -> None:
    repo = RepositoryFactory.create_reservation_repository(db)
    transient = repo._storage_error("find", OperationalError("SELECT", {}, Exception("locked")))
    permanent = repo._storage_error("create", IntegrityError("INSERT", {}, Exception("dup")))
    assert isinstance(transient, TransientStorageException)
    assert isinstance(permanent, RepositoryException)
