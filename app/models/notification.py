from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from app.models.event import EventType
from app.models.user import utcnow


class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    recipient_id: int = Field(foreign_key="user.id", index=True)
    sender_id: int = Field(foreign_key="user.id")
    event_id: int = Field(foreign_key="event.id", index=True)
    type: EventType
    title: str
    body: str
    category: str = "default"
    created_at: datetime = Field(default_factory=utcnow)
    read_at: Optional[datetime] = None
