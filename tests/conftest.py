"""Shared pytest fixtures for the session ledger tests."""

from datetime import datetime, timedelta, timezone

import pytest

from session_ledger.db import Database
from session_ledger.db.events import EventsDB
from session_ledger.db.sessions import SessionsDB
from session_ledger.service import LedgerService


class StepClock:
    """Deterministic clock; advances by `step` on every read."""

    def __init__(self, start=None, step=timedelta(milliseconds=1)):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "ledger.db")


@pytest.fixture
def database(db_path):
    return Database(db_path)


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def sessions_db(database, clock):
    return SessionsDB(database, clock=clock)


@pytest.fixture
def events_db(database, clock):
    return EventsDB(database, clock=clock)


@pytest.fixture
def ledger(sessions_db, events_db):
    return LedgerService(sessions_db, events_db)
