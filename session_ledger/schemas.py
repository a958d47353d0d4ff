"""
Pydantic schemas for API request/response models.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from session_ledger.models import EventType, SessionStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# Session schemas
class SessionCreate(CamelModel):
    session_id: str = Field(min_length=1)
    status: Optional[SessionStatus] = None
    language: str = Field(min_length=1)
    started_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None


class SessionOut(CamelModel):
    session_id: str
    status: SessionStatus
    language: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    metadata: Dict[str, Any]


# Event schemas
class EventCreate(CamelModel):
    event_id: str = Field(min_length=1)
    type: EventType
    payload: Dict[str, Any]


class EventOut(CamelModel):
    session_id: str
    event_id: str
    type: EventType
    payload: Dict[str, Any]
    timestamp: datetime


# Paged view
class PaginationOut(CamelModel):
    offset: int
    limit: int
    total: int
    has_more: bool


class SessionWithEvents(CamelModel):
    session: SessionOut
    events: List[EventOut]
    pagination: PaginationOut
