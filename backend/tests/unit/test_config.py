from __future__ import annotations

from pydantic import ValidationError
import pytest

from clubreserve.core.config import DEFAULT_SLOT_CATALOG, Settings


def test_defaults() -> None:
    config = Settings(_env_file=None, default_timezone="America/Argentina/Buenos_Aires")
    assert config.slot_catalog == DEFAULT_SLOT_CATALOG
    assert config.booking_window_days == 30
    assert config.max_series_weeks == 52


def test_catalog_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("SLOT_CATALOG", '["07:00", "08:30"]')
    config = Settings(_env_file=None)
    assert config.slot_catalog == ["07:00", "08:30"]


@pytest.mark.parametrize(
    "catalog",
    [["8:00"], ["08:00", "08:00"], ["25:00"], [], ["12:30\n"], ["\u0661\u0662:\u0663\u0660"]],
)
def test_invalid_catalog_is_rejected(catalog) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, slot_catalog=catalog)


def test_unknown_default_timezone_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, default_timezone="Nowhere/Land")
