from __future__ import annotations

from clubreserve.core.exceptions import (
    BusinessRuleException,
    NonexistentLocalTimeException,
    ResourceNotFoundException,
    SeriesConflictException,
    SlotConflictException,
    TransientStorageException,
    ValidationException,
)


def test_slot_conflict_maps_to_409_with_code() -> None:
    exc = SlotConflictException(details={"court_id": "c1"})
    http_exc = exc.to_http_exception()
    assert http_exc.status_code == 409
    assert http_exc.detail["code"] == "SLOT_CONFLICT"
    assert http_exc.detail["details"] == {"court_id": "c1"}


def test_series_conflict_has_its_own_code() -> None:
    assert SeriesConflictException().code == "SERIES_CONFLICT"
    assert SeriesConflictException().status_code == 409


def test_business_rule_is_unprocessable() -> None:
    assert BusinessRuleException("nope").to_http_exception().status_code == 422


def test_validation_defaults_code_to_class_name() -> None:
    exc = ValidationException("bad")
    assert exc.code == "ValidationException"
    assert exc.to_dict() == {"message": "bad", "code": "ValidationException", "details": {}}


def test_not_found_carries_id() -> None:
    exc = ResourceNotFoundException("court-9")
    assert exc.status_code == 404
    assert exc.details == {"court_id": "court-9"}


def test_transient_storage_error_asks_client_to_retry() -> None:
    http_exc = TransientStorageException().to_http_exception()
    assert http_exc.status_code == 503
    assert http_exc.headers == {"Retry-After": "2"}
    assert http_exc.detail["code"] == "TRANSIENT_STORAGE_ERROR"


def test_nonexistent_local_time_is_a_validation_error() -> None:
    exc = NonexistentLocalTimeException("2026-03-08", "02:30", "America/New_York")
    assert isinstance(exc, ValidationException)
    assert exc.details == {"date": "2026-03-08", "time": "02:30", "timezone": "America/New_York"}
