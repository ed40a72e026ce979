from typing import Any, List

from fastapi import APIRouter, Query

from app.api import deps
from app.schemas.notification import NotificationRead
from app.services import notifications

router = APIRouter()


@router.get("", response_model=List[NotificationRead])
def list_notifications(
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
) -> Any:
    return notifications.list_for(session, current_user.id, unread_only=unread_only, limit=limit)


@router.post("/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    notification_id: int,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> Any:
    return notifications.mark_read(session, notification_id, current_user)
