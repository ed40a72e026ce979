import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session

from app.core.security import create_access_token
from app.models.user import LoginSession, User, utcnow

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    """The signed-in user and the login that authenticated this request."""

    user: User
    login: LoginSession


def login(session: Session, user: User) -> str:
    """Open a login session for ``user`` and return its bearer token."""
    login_session = LoginSession(id=uuid.uuid4().hex, user_id=user.id)
    session.add(login_session)
    session.commit()
    logger.info("User %s signed in (session %s)", user.id, login_session.id)
    return create_access_token(user.id, login_session.id)


def resolve(session: Session, user_id: int, session_id: str) -> Optional[SessionContext]:
    login_session = session.get(LoginSession, session_id)
    if not login_session or login_session.revoked_at is not None or login_session.user_id != user_id:
        return None
    user = session.get(User, user_id)
    if not user:
        return None
    return SessionContext(user=user, login=login_session)


def logout(session: Session, context: SessionContext) -> None:
    context.login.revoked_at = utcnow()
    session.add(context.login)
    session.commit()
    logger.info("User %s signed out (session %s)", context.user.id, context.login.id)
