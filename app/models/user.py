from datetime import datetime, timezone
from typing import Optional
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def naive_utc(moment: datetime) -> datetime:
    """Timestamps come back from the database as naive UTC; bring ``moment`` to the same form."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    email_verified: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    # Pairing
    invite_code: str = Field(unique=True, index=True)
    partner_id: Optional[int] = Field(default=None, foreign_key="user.id")
    paired_at: Optional[datetime] = None

    # Delivery
    push_token: Optional[str] = None


class LoginSession(SQLModel, table=True):
    id: str = Field(primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
    revoked_at: Optional[datetime] = None
