"""
Session Ledger - conversational sessions and their ordered events.

Sessions and events are created idempotently (first write wins) and events
can only be appended to sessions that exist.
"""
from .errors import LedgerError, NotFound, StoreUnavailable
from .models import Event, EventType, Pagination, Session, SessionPage, SessionStatus
from .service import LedgerService, open_ledger

__version__ = "0.1.0"
__all__ = [
    "LedgerService", "open_ledger",
    "Session", "SessionStatus", "Event", "EventType", "Pagination", "SessionPage",
    "LedgerError", "NotFound", "StoreUnavailable",
]
