from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    email_verified: bool
    invite_code: str
    partner_id: Optional[int] = None
    paired_at: Optional[datetime] = None
    created_at: datetime


class UserUpdate(BaseModel):
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)


class PushTokenUpdate(BaseModel):
    token: str = Field(min_length=1, max_length=255)


class UserStats(BaseModel):
    points_earned: int
    points_spent: int
    points_balance: int
    appreciations_sent: int
    appreciations_received: int
    current_streak: int
    longest_streak: int
    last_activity_date: Optional[date] = None
