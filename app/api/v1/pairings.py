from typing import Any

from fastapi import APIRouter

from app.api import deps
from app.models.user import User
from app.schemas.msg import Msg
from app.schemas.pairing import (
    InviteCodeResponse,
    PairingRequest,
    PairingResponse,
    PendingRedeemRequest,
)
from app.services import accounts, invites

router = APIRouter()


def _paired(partner: User) -> dict:
    return {
        "message": "Paired successfully",
        "partner": {
            "id": partner.id,
            "display_name": partner.display_name,
            "avatar_url": partner.avatar_url,
        },
    }


@router.get("/code", response_model=InviteCodeResponse)
def get_invite_code(current_user: deps.CurrentUser) -> Any:
    """
    The current user's invite code, the URL encoded in their QR code and the app deep link.
    """
    code = current_user.invite_code
    return {
        "invite_code": code,
        "invite_url": invites.invite_url(code),
        "deep_link": invites.deep_link(code),
    }


@router.post("/pair", response_model=PairingResponse)
def pair_users(
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    body: PairingRequest,
) -> Any:
    """
    Pair with another user using their code, a scanned invite URL or a deep link.
    """
    partner = invites.redeem_invite(session, current_user, body.code)
    return _paired(partner)


@router.post("/pending", response_model=PairingResponse)
def redeem_pending_invite(
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    body: PendingRedeemRequest,
) -> Any:
    """
    Redeem the invite this device stored before signing in. The stored invite
    is discarded whether or not pairing succeeds.
    """
    partner = invites.redeem_pending_invite(session, current_user, body.device_id)
    return _paired(partner)


@router.post("/unpair", response_model=Msg)
def unpair_users(
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
) -> Any:
    """
    Unpair from current partner. Shared history stays in the ledger.
    """
    accounts.clear_partner(session, current_user)
    return {"message": "Unpaired successfully"}
