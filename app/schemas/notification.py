from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.event import EventType


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: int
    event_id: int
    type: EventType
    title: str
    body: str
    category: str
    created_at: datetime
    read_at: Optional[datetime] = None
