"""
Database initialization and connection management.
"""
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from session_ledger.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class Database:
    """SQLite database manager for the session ledger."""

    def __init__(self, db_path: str, busy_timeout_ms: int = 5000):
        self.db_path = db_path
        self.busy_timeout_ms = busy_timeout_ms
        self._ensure_db_dir()
        self._initialize_schema()

    def _ensure_db_dir(self):
        """Ensure the database directory exists."""
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

    def _initialize_schema(self):
        """Initialize database schema if not exists."""
        try:
            conn = self.get_connection()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Cannot open database at {self.db_path}: {e}") from e
        try:
            conn.execute("PRAGMA journal_mode=WAL")

            # Sessions table
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    status TEXT NOT NULL,
                    language TEXT NOT NULL,
                    started_at TEXT NOT NULL,
                    ended_at TEXT,
                    metadata TEXT NOT NULL DEFAULT '{}'
                )
            """)

            # Events table; seq breaks timestamp ties in insertion order
            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL,
                    event_id TEXT NOT NULL,
                    type TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    UNIQUE (session_id, event_id)
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_events_session_timestamp
                ON events(session_id, timestamp, seq)
            """)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Cannot initialize schema: {e}") from e
        finally:
            conn.close()

    def get_connection(self) -> sqlite3.Connection:
        """Get a new autocommit connection; transactions are explicit."""
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.busy_timeout_ms / 1000,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout_ms)}")
        return conn

    @contextmanager
    def transaction(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Run a block inside a single transaction on a fresh connection.

        Write transactions take the write lock up front (BEGIN IMMEDIATE) so a
        conditional insert and its read-back cannot interleave with another
        writer. Read transactions see one consistent snapshot.

        sqlite3.IntegrityError propagates unchanged so callers can resolve key
        conflicts; every other sqlite3.Error becomes StoreUnavailable.
        """
        try:
            conn = self.get_connection()
        except sqlite3.Error as e:
            logger.error(f"Cannot connect to {self.db_path}: {e}")
            raise StoreUnavailable(str(e)) from e

        try:
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            yield conn
            conn.execute("COMMIT")
        except BaseException as e:
            _rollback(conn)
            if isinstance(e, sqlite3.Error) and not isinstance(e, sqlite3.IntegrityError):
                logger.error(f"Store operation failed: {e}")
                raise StoreUnavailable(str(e)) from e
            raise
        finally:
            conn.close()

    def fetchone(self, query: str, params: tuple = ()) -> Optional[dict]:
        """Fetch a single row."""
        with self.transaction() as conn:
            row = conn.execute(query, params).fetchone()
        return dict(row) if row else None


def _rollback(conn: sqlite3.Connection) -> None:
    if conn.in_transaction:
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            logger.error(f"Rollback failed: {e}")
