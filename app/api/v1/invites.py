from typing import Any

from fastapi import APIRouter, status

from app.api import deps
from app.schemas.msg import Msg
from app.schemas.pairing import InvitePreview, PendingInviteRequest
from app.services import invites

router = APIRouter()


@router.get("/{code}", response_model=InvitePreview)
def preview_invite(code: str, session: deps.SessionDep) -> Any:
    """
    Who an invite link belongs to, shown before the visitor signs in.
    """
    inviter = invites.preview_invite(session, code)
    return {
        "invite_code": inviter.invite_code,
        "inviter": {
            "id": inviter.id,
            "display_name": inviter.display_name,
            "avatar_url": inviter.avatar_url,
        },
    }


@router.post("/pending", response_model=Msg, status_code=status.HTTP_202_ACCEPTED)
def stash_pending_invite(body: PendingInviteRequest, session: deps.SessionDep) -> Any:
    invites.stash_pending_invite(session, body.device_id, body.code)
    return {"message": "Invite saved until sign-in"}
