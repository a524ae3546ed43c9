# backend/tests/conftest.py
"""
Pytest configuration for the reservation backend.

Every test gets its own SQLite file so the immediate-transaction locking
behaves exactly as in a deployment; nothing shares state across tests.
"""

import os

# Set before any clubreserve import so the module-level engine never
# points at a developer database.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEFAULT_TIMEZONE"] = "UTC"
os.environ.setdefault("CI", "true")

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from clubreserve.core.enums import RoleName
from clubreserve.database import Base, create_db_engine, make_session_factory
from clubreserve.models import ActivityType, Club, Court
from clubreserve.schemas.reservation import Caller, GuestDescriptor

# Monday
FIXED_NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def set(self, now: datetime) -> None:
        self.current = now


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'clubreserve_test.db'}", busy_timeout=10)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def club(db) -> Club:
    club = Club(name="Club Atlético Norte", slug="norte")
    db.add(club)
    db.commit()
    return club


@pytest.fixture
def court(db, club) -> Court:
    court = Court(
        club_id=club.id,
        name="Court 1",
        surface="clay",
        timezone="UTC",
        base_price=Decimal("100.00"),
    )
    db.add(court)
    db.commit()
    return court


@pytest.fixture
def second_court(db, club) -> Court:
    court = Court(
        club_id=club.id,
        name="Court 2",
        surface="synthetic",
        timezone="UTC",
        base_price=Decimal("80.00"),
    )
    db.add(court)
    db.commit()
    return court


@pytest.fixture
def activity(db) -> ActivityType:
    activity = ActivityType(name="Padel", default_duration_minutes=90)
    db.add(activity)
    db.commit()
    return activity


@pytest.fixture
def member() -> Caller:
    return Caller(holder_id="user-1", role=RoleName.MEMBER)


@pytest.fixture
def admin() -> Caller:
    return Caller(holder_id="admin-1", role=RoleName.ADMIN)


@pytest.fixture
def walk_in() -> GuestDescriptor:
    return GuestDescriptor(name="Laura Gómez", phone="+54 11 5555 0000")
