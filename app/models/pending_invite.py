from datetime import datetime

from sqlmodel import Field, SQLModel

from app.models.user import utcnow


class PendingInvite(SQLModel, table=True):
    """Invite code held for a device that opened an invite link before signing in."""

    device_id: str = Field(primary_key=True, max_length=128)
    code: str
    stored_at: datetime = Field(default_factory=utcnow)
