"""
Database operations for session events.
"""
import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Callable, Dict, List, Tuple

from session_ledger.db import Database
from session_ledger.errors import StoreUnavailable
from session_ledger.models import Event, EventType, format_ts, utc_now

logger = logging.getLogger(__name__)


class EventsDB:
    """
    Event operations. One record per (session_id, event_id), first write wins.

    Does not check that the owning session exists; that is left to the caller.
    """

    def __init__(self, db: Database, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def create_event(
        self,
        session_id: str,
        event_id: str,
        type: EventType,
        payload: Dict[str, Any],
    ) -> Event:
        """
        Insert an event stamped with the current time unless one with the same
        (session_id, event_id) already exists. Either way the stored event is
        returned, so a duplicate keeps its original type, payload and timestamp.
        """
        event_type = EventType(type)
        try:
            with self.db.transaction(write=True) as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO events (session_id, event_id, type, payload, timestamp)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(session_id, event_id) DO NOTHING
                    """,
                    (
                        session_id,
                        event_id,
                        event_type.value,
                        json.dumps(payload, ensure_ascii=False),
                        format_ts(self.clock()),
                    ),
                )
                inserted = cursor.rowcount == 1
                row = conn.execute(
                    "SELECT * FROM events WHERE session_id = ? AND event_id = ?",
                    (session_id, event_id),
                ).fetchone()
        except sqlite3.IntegrityError as e:
            row = self.db.fetchone(
                "SELECT * FROM events WHERE session_id = ? AND event_id = ?",
                (session_id, event_id),
            )
            if row is None:
                logger.error(f"Cannot store event {event_id} for session {session_id}: {e}")
                raise StoreUnavailable(str(e)) from e
            return Event.from_row(row)

        if not inserted:
            logger.debug(f"Event {event_id} already recorded for session {session_id}")
        return Event.from_row(dict(row))

    def find_by_session_id(
        self,
        session_id: str,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Event], int]:
        """
        List one page of a session's events, oldest first, plus the total
        count. Both come from the same read transaction.
        """
        with self.db.transaction() as conn:
            total = conn.execute(
                "SELECT COUNT(*) FROM events WHERE session_id = ?",
                (session_id,),
            ).fetchone()[0]
            rows = conn.execute(
                """
                SELECT * FROM events
                WHERE session_id = ?
                ORDER BY timestamp ASC, seq ASC
                LIMIT ? OFFSET ?
                """,
                (session_id, limit, offset),
            ).fetchall()

        return [Event.from_row(dict(row)) for row in rows], total
