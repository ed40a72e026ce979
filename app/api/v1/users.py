from typing import Any

from fastapi import APIRouter

from app.api import deps
from app.core.errors import NotFound
from app.schemas.msg import Msg
from app.schemas.pairing import PartnerInfo
from app.schemas.user import PushTokenUpdate, UserRead, UserStats, UserUpdate
from app.services import accounts, stats

router = APIRouter()


@router.get("/me", response_model=UserRead)
def read_me(current_user: deps.CurrentUser) -> Any:
    return current_user


@router.patch("/me", response_model=UserRead)
def update_me(
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    body: UserUpdate,
) -> Any:
    return accounts.update_profile(
        session,
        current_user,
        display_name=body.display_name,
        avatar_url=body.avatar_url,
    )


@router.put("/me/push-token", response_model=Msg)
def register_push_token(
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    body: PushTokenUpdate,
) -> Any:
    accounts.set_push_token(session, current_user, body.token)
    return {"message": "Push token registered"}


@router.delete("/me/push-token", response_model=Msg)
def remove_push_token(session: deps.SessionDep, current_user: deps.CurrentUser) -> Any:
    accounts.set_push_token(session, current_user, None)
    return {"message": "Push token removed"}


@router.get("/me/stats", response_model=UserStats)
def read_my_stats(session: deps.SessionDep, current_user: deps.CurrentUser) -> Any:
    """
    Points and streaks, computed from the event history.
    """
    points = stats.point_balance(session, current_user.id)
    activity = stats.activity_summary(session, current_user.id)
    return {
        "points_earned": points.earned,
        "points_spent": points.spent,
        "points_balance": points.balance,
        "appreciations_sent": activity.appreciations_sent,
        "appreciations_received": activity.appreciations_received,
        "current_streak": activity.current_streak,
        "longest_streak": activity.longest_streak,
        "last_activity_date": activity.last_activity_date,
    }


@router.get("/{user_id}", response_model=PartnerInfo)
def read_profile(
    user_id: int,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> Any:
    # Only yourself and your partner are visible
    if user_id not in (current_user.id, current_user.partner_id):
        raise NotFound("User not found")
    return accounts.get_profile(session, user_id)
