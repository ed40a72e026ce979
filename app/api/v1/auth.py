import logging
from typing import Any

from fastapi import APIRouter, Request, HTTPException
from fastapi.responses import RedirectResponse
from fastapi_sso.sso.google import GoogleSSO
from sqlmodel import select

from app.api import deps
from app.core.config import settings
from app.models.user import User
from app.schemas.msg import Msg
from app.schemas.token import Token
from app.services import accounts, sessions

logger = logging.getLogger(__name__)

router = APIRouter()

GOOGLE_CALLBACK_URL = f"{settings.SERVER_HOST.rstrip('/')}{settings.API_V1_STR}/auth/callback/google"

google_sso = None
if settings.GOOGLE_CLIENT_ID and settings.GOOGLE_CLIENT_SECRET:
    google_sso = GoogleSSO(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        redirect_uri=GOOGLE_CALLBACK_URL,
        allow_insecure_http=settings.SERVER_HOST.startswith("http://"),
    )
else:
    logger.warning("Google SSO is not configured, sign-in is disabled")


@router.get("/login/google", response_class=RedirectResponse)
async def google_login():
    """Generate login URL and redirect"""
    if not google_sso:
        raise HTTPException(status_code=500, detail="Google SSO not configured")
    return await google_sso.get_login_redirect(redirect_uri=GOOGLE_CALLBACK_URL)


@router.get("/callback/google", response_model=Token)
async def google_callback(request: Request, session: deps.SessionDep) -> Any:
    """Process login response from Google and return JWT"""
    if not google_sso:
        raise HTTPException(status_code=500, detail="Google SSO not configured")

    try:
        user_info = await google_sso.verify_and_process(request)
    except Exception as e:
        logger.warning("Google SSO callback rejected: %s", e)
        raise HTTPException(status_code=400, detail=f"SSO Error: {str(e)}")

    if not user_info or not user_info.email:
        raise HTTPException(status_code=400, detail="No email returned from Google")

    user = session.exec(select(User).where(User.email == user_info.email)).first()
    if not user:
        # Google only hands out verified addresses
        user = accounts.create_user(
            session,
            email=user_info.email,
            display_name=user_info.display_name,
            avatar_url=user_info.picture,
            email_verified=True,
        )

    access_token = sessions.login(session, user)
    session.refresh(user)
    return {"access_token": access_token, "token_type": "bearer", "user": user}


@router.post("/logout", response_model=Msg)
def logout(session: deps.SessionDep, context: deps.CurrentSession) -> Any:
    sessions.logout(session, context)
    return {"message": "Signed out"}
