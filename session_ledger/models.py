"""
Data models for the session ledger.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import json


class SessionStatus(str, Enum):
    INITIATED = "initiated"
    ACTIVE = "active"
    COMPLETED = "completed"


class EventType(str, Enum):
    USER_SPEECH = "user_speech"
    BOT_SPEECH = "bot_speech"
    SYSTEM = "system"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_ts(value: datetime) -> str:
    """
    Fixed-width ISO-8601 so that string order in the store equals time order.
    """
    return to_utc(value).isoformat(timespec="microseconds")


def parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


@dataclass
class Session:
    """A conversational session record"""
    session_id: str
    status: SessionStatus
    language: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "status": self.status.value,
            "language": self.language,
            "startedAt": self.started_at.isoformat(),
            "endedAt": self.ended_at.isoformat() if self.ended_at else None,
            "metadata": self.metadata,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Session":
        return cls(
            session_id=row["session_id"],
            status=SessionStatus(row["status"]),
            language=row["language"],
            started_at=parse_ts(row["started_at"]),
            ended_at=parse_ts(row.get("ended_at")),
            metadata=json.loads(row.get("metadata") or "{}"),
        )


@dataclass
class Event:
    """A single event recorded within a session"""
    session_id: str
    event_id: str
    type: EventType
    payload: Dict[str, Any]
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "eventId": self.event_id,
            "type": self.type.value,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Event":
        return cls(
            session_id=row["session_id"],
            event_id=row["event_id"],
            type=EventType(row["type"]),
            payload=json.loads(row["payload"]),
            timestamp=parse_ts(row["timestamp"]),
        )


@dataclass
class Pagination:
    offset: int
    limit: int
    total: int
    has_more: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offset": self.offset,
            "limit": self.limit,
            "total": self.total,
            "hasMore": self.has_more,
        }


@dataclass
class SessionPage:
    """A session together with one page of its events"""
    session: Session
    events: List[Event]
    pagination: Pagination

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session": self.session.to_dict(),
            "events": [event.to_dict() for event in self.events],
            "pagination": self.pagination.to_dict(),
        }
