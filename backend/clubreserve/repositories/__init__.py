# backend/clubreserve/repositories/__init__.py
"""
Repository layer.

Services obtain repositories through ``RepositoryFactory``; repositories
flush but never commit.
"""

from .base_repository import BaseRepository
from .catalog_repository import CatalogRepository
from .factory import RepositoryFactory
from .ledger_repository import LedgerRepository
from .recurring_series_repository import RecurringSeriesRepository
from .reservation_repository import ReservationRepository

__all__ = [
    "BaseRepository",
    "CatalogRepository",
    "LedgerRepository",
    "RecurringSeriesRepository",
    "RepositoryFactory",
    "ReservationRepository",
]
