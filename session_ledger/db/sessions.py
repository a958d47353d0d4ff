"""
Database operations for sessions.
"""
import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from session_ledger.db import Database
from session_ledger.errors import StoreUnavailable
from session_ledger.models import Session, SessionStatus, format_ts, utc_now

logger = logging.getLogger(__name__)


class SessionsDB:
    """Session operations. One record per session_id, first write wins."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def create_or_get(
        self,
        session_id: str,
        language: str,
        status: Optional[SessionStatus] = None,
        started_at: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Session:
        """
        Insert a session if none exists for session_id, then return the stored
        record. An existing record is returned verbatim; the new field values
        are discarded.
        """
        status = SessionStatus(status) if status is not None else SessionStatus.INITIATED
        started = format_ts(started_at if started_at is not None else self.clock())

        try:
            with self.db.transaction(write=True) as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO sessions (session_id, status, language, started_at, ended_at, metadata)
                    VALUES (?, ?, ?, ?, NULL, ?)
                    ON CONFLICT(session_id) DO NOTHING
                    """,
                    (
                        session_id,
                        status.value,
                        language,
                        started,
                        json.dumps(metadata or {}, ensure_ascii=False),
                    ),
                )
                inserted = cursor.rowcount == 1
                row = conn.execute(
                    "SELECT * FROM sessions WHERE session_id = ?",
                    (session_id,),
                ).fetchone()
        except sqlite3.IntegrityError as e:
            # Lost a race on the primary key: the winner's row is the answer
            existing = self.find_by_session_id(session_id)
            if existing is None:
                logger.error(f"Cannot store session {session_id}: {e}")
                raise StoreUnavailable(str(e)) from e
            return existing

        if inserted:
            logger.info(f"Created session {session_id} (status={status.value}, language={language})")
        else:
            logger.debug(f"Session {session_id} already exists, returning stored record")
        return Session.from_row(dict(row))

    def find_by_session_id(self, session_id: str) -> Optional[Session]:
        """Get a session by ID."""
        row = self.db.fetchone(
            "SELECT * FROM sessions WHERE session_id = ?",
            (session_id,)
        )
        return Session.from_row(row) if row else None

    def complete_session(self, session_id: str) -> Optional[Session]:
        """
        Mark a session completed and stamp ended_at.

        Applied unconditionally: completing an already completed session
        refreshes ended_at. Returns None when the session does not exist.
        """
        ended = format_ts(self.clock())
        with self.db.transaction(write=True) as conn:
            cursor = conn.execute(
                "UPDATE sessions SET status = ?, ended_at = ? WHERE session_id = ?",
                (SessionStatus.COMPLETED.value, ended, session_id),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT * FROM sessions WHERE session_id = ?",
                (session_id,),
            ).fetchone()

        logger.info(f"Completed session {session_id}")
        return Session.from_row(dict(row))
