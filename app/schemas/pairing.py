from pydantic import BaseModel
from typing import Optional

class InviteCodeResponse(BaseModel):
    invite_code: str
    invite_url: str
    deep_link: str

class PartnerInfo(BaseModel):
    id: Optional[int]
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None

class PairingRequest(BaseModel):
    code: str

class PendingRedeemRequest(BaseModel):
    device_id: str

class PairingResponse(BaseModel):
    message: str
    partner: PartnerInfo

class PendingInviteRequest(BaseModel):
    device_id: str
    code: str

class InvitePreview(BaseModel):
    invite_code: str
    inviter: PartnerInfo
