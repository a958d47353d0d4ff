"""
Error kinds raised by the ledger.
"""


class LedgerError(Exception):
    """Base class for ledger failures."""


class NotFound(LedgerError):
    def __init__(self, session_id: str):
        super().__init__(f"Session with ID {session_id} not found")
        self.session_id = session_id


class StoreUnavailable(LedgerError):
    """The underlying store failed; the original error is chained."""
