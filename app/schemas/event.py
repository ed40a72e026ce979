from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from app.models.event import Acknowledgement, EventResponse, EventType


class EventCreate(BaseModel):
    receiver_id: int
    type: EventType
    content: Dict[str, Any] = {}


class EventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: EventType
    sender_id: int
    receiver_id: int
    content: Dict[str, Any]
    created_at: datetime
    response: Optional[EventResponse] = None
    responded_at: Optional[datetime] = None
    acknowledgement: Optional[Acknowledgement] = None
    acknowledged_at: Optional[datetime] = None
    reaction: Optional[str] = None


class EventRespond(BaseModel):
    response: EventResponse


class EventAcknowledge(BaseModel):
    kind: Acknowledgement
    reaction: Optional[str] = None


class EventReply(BaseModel):
    event: EventRead
    reply: EventRead
