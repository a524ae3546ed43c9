from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from clubreserve.core.exceptions import (
    RepositoryException,
    ServiceException,
    TransientStorageException,
)
from clubreserve.monitoring.prometheus_metrics import REGISTRY
from clubreserve.services.base import BaseService


class _DummyService(BaseService):
    @BaseService.measure_operation("dummy_op")
    def run(self, fail: bool = False) -> str:
        if fail:
            raise ValueError("boom")
        return "ok"


def _ops_total(status: str) -> float:
    value = REGISTRY.get_sample_value(
        "clubreserve_service_operations_total",
        {"service": "_DummyService", "operation": "dummy_op", "status": status},
    )
    return value or 0.0


def test_transaction_commits_on_success() -> None:
    db = MagicMock()
    service = BaseService(db)
    with service.transaction():
        pass
    db.commit.assert_called_once()
    db.rollback.assert_not_called()


def test_operational_error_becomes_transient() -> None:
    db = MagicMock()
    service = BaseService(db)
    with pytest.raises(TransientStorageException):
        with service.transaction():
            raise OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))
    db.rollback.assert_called_once()
    db.commit.assert_not_called()


def test_other_sqlalchemy_errors_become_service_errors() -> None:
    db = MagicMock()
    service = BaseService(db)
    with pytest.raises(ServiceException) as exc_info:
        with service.transaction():
            raise IntegrityError("INSERT", {}, Exception("constraint failed"))
    assert not isinstance(exc_info.value, TransientStorageException)
    db.rollback.assert_called_once()


def test_domain_errors_roll_back_and_propagate() -> None:
    db = MagicMock()
    service = BaseService(db)
    with pytest.raises(ValueError):
        with service.transaction():
            raise ValueError("rule broken")
    db.rollback.assert_called_once()


def test_best_effort_swallows_storage_failures() -> None:
    db = MagicMock()
    service = BaseService(db)
    with service.best_effort("append refund", reservation_id="r1"):
        raise RepositoryException("ledger unavailable")
    db.begin_nested.assert_called_once()


def test_best_effort_does_not_hide_programming_errors() -> None:
    db = MagicMock()
    service = BaseService(db)
    with pytest.raises(KeyError):
        with service.best_effort("append refund"):
            raise KeyError("missing")


def test_injected_clock_drives_now() -> None:
    fixed = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
    service = BaseService(MagicMock(), clock=lambda: fixed)
    assert service.now() == fixed


def test_default_clock_is_aware_utc() -> None:
    assert BaseService(MagicMock()).now().tzinfo == timezone.utc


def test_measure_operation_records_outcomes() -> None:
    service = _DummyService(MagicMock())
    ok_before, err_before = _ops_total("success"), _ops_total("error")

    assert service.run() == "ok"
    with pytest.raises(ValueError):
        service.run(fail=True)

    assert _ops_total("success") == ok_before + 1
    assert _ops_total("error") == err_before + 1
    assert _DummyService.run._operation_name == "dummy_op"
