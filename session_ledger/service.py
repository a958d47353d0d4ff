"""
Ledger service: the stateless coordinator over the session and event stores.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from session_ledger.db import Database
from session_ledger.db.events import EventsDB
from session_ledger.db.sessions import SessionsDB
from session_ledger.errors import NotFound
from session_ledger.models import (
    Event,
    EventType,
    Pagination,
    Session,
    SessionPage,
    SessionStatus,
    utc_now,
)

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Enforces that events are only appended to existing sessions and assembles
    paginated session views. Holds no state besides its two stores.
    """

    def __init__(self, sessions: SessionsDB, events: EventsDB):
        self.sessions = sessions
        self.events = events

    def create_or_get_session(
        self,
        session_id: str,
        language: str,
        status: Optional[SessionStatus] = None,
        started_at: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Session:
        return self.sessions.create_or_get(
            session_id=session_id,
            language=language,
            status=status,
            started_at=started_at,
            metadata=metadata,
        )

    def add_event(
        self,
        session_id: str,
        event_id: str,
        type: EventType,
        payload: Dict[str, Any],
    ) -> Event:
        """Append an event; the session is re-read on every call."""
        self._require_session(session_id)
        return self.events.create_event(session_id, event_id, type, payload)

    def get_session_with_events(
        self,
        session_id: str,
        offset: int = 0,
        limit: int = 50,
    ) -> SessionPage:
        session = self._require_session(session_id)
        events, total = self.events.find_by_session_id(session_id, offset, limit)
        return SessionPage(
            session=session,
            events=events,
            pagination=Pagination(
                offset=offset,
                limit=limit,
                total=total,
                has_more=offset + limit < total,
            ),
        )

    def complete_session(self, session_id: str) -> Session:
        session = self.sessions.complete_session(session_id)
        if session is None:
            logger.warning(f"Cannot complete session {session_id}: not found")
            raise NotFound(session_id)
        return session

    def _require_session(self, session_id: str) -> Session:
        session = self.sessions.find_by_session_id(session_id)
        if session is None:
            logger.warning(f"Session {session_id} not found")
            raise NotFound(session_id)
        return session


def open_ledger(
    db_path: str,
    busy_timeout_ms: int = 5000,
    clock: Callable[[], datetime] = utc_now,
) -> LedgerService:
    """Wire a database and both stores into a LedgerService."""
    db = Database(db_path, busy_timeout_ms=busy_timeout_ms)
    return LedgerService(
        sessions=SessionsDB(db, clock=clock),
        events=EventsDB(db, clock=clock),
    )
