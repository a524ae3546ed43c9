"""Court reservation scheduling, recurrence and ledger reconciliation."""

__version__ = "0.1.0"
