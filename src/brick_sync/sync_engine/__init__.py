"""
Sync Engine Module

Device ledger persistence and availability polling.

Author: brick-sync Project
License: MIT
"""

from .ledger import DeviceLedger, LedgerPersistenceError, LedgerStore, TransferRecord
from .poller import AvailabilityPoller, PollCancelledError

__all__ = [
    'DeviceLedger', 'LedgerPersistenceError', 'LedgerStore', 'TransferRecord',
    'AvailabilityPoller', 'PollCancelledError'
]
