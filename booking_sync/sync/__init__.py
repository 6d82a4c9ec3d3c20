from booking_sync.sync.enrichment import TestHistoryEnricher
from booking_sync.sync.policy import ErrorPolicy, SyncAction
from booking_sync.sync.synchroniser import BookingOutcome, Synchroniser, SyncRunReport

__all__ = [
    "BookingOutcome",
    "ErrorPolicy",
    "SyncAction",
    "SyncRunReport",
    "Synchroniser",
    "TestHistoryEnricher",
]
