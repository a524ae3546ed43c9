from .availability import ScheduleEntry
from .ledger import DailyLedgerSummary, DebtorSummary, HolderBalance
from .reservation import Caller, GuestDescriptor
from .series import SeriesCreateResult

__all__ = [
    "Caller",
    "DailyLedgerSummary",
    "DebtorSummary",
    "GuestDescriptor",
    "HolderBalance",
    "ScheduleEntry",
    "SeriesCreateResult",
]
