from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from app.models.user import utcnow


class EventType(str, Enum):
    APPRECIATION = "APPRECIATION"
    FAVOR_REQUEST = "FAVOR_REQUEST"
    FAVOR_ACCEPTED = "FAVOR_ACCEPTED"
    FAVOR_DECLINED = "FAVOR_DECLINED"
    PING = "PING"
    DONT_PANIC = "DONT_PANIC"
    WISDOM = "WISDOM"
    REACTION = "REACTION"
    THANK_YOU = "THANK_YOU"


class EventResponse(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    THANK_YOU = "thank_you"


class Acknowledgement(str, Enum):
    THANK_YOU = "thank_you"
    REACTION = "reaction"


class Event(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    type: EventType = Field(index=True)
    sender_id: int = Field(foreign_key="user.id", index=True)
    receiver_id: int = Field(foreign_key="user.id", index=True)
    content: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, index=True)

    # Set once by the receiver, never cleared
    response: Optional[EventResponse] = None
    responded_at: Optional[datetime] = None
    acknowledgement: Optional[Acknowledgement] = None
    acknowledged_at: Optional[datetime] = None
    reaction: Optional[str] = None
