# backend/clubreserve/repositories/factory.py
"""
Repository Factory.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .catalog_repository import CatalogRepository
    from .ledger_repository import LedgerRepository
    from .recurring_series_repository import RecurringSeriesRepository
    from .reservation_repository import ReservationRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_reservation_repository(db: Session) -> "ReservationRepository":
        """Create repository for reservations and their charges."""
        from .reservation_repository import ReservationRepository

        return ReservationRepository(db)

    @staticmethod
    def create_recurring_series_repository(db: Session) -> "RecurringSeriesRepository":
        """Create repository for recurring series templates."""
        from .recurring_series_repository import RecurringSeriesRepository

        return RecurringSeriesRepository(db)

    @staticmethod
    def create_ledger_repository(db: Session) -> "LedgerRepository":
        """Create repository for the append-only ledger."""
        from .ledger_repository import LedgerRepository

        return LedgerRepository(db)

    @staticmethod
    def create_catalog_repository(db: Session) -> "CatalogRepository":
        """Create repository for court and activity lookups."""
        from .catalog_repository import CatalogRepository

        return CatalogRepository(db)
