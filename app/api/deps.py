from typing import Callable, Generator, Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlmodel import Session

from app.core.config import settings
from app.core.db import engine
from app.core.security import decode_access_token
from app.models.user import User
from app.services import sessions
from app.services.dispatch import Dispatcher
from app.services.push import ExpoPushTransport
from app.services.realtime import hub
from app.services.sessions import SessionContext

# Tokens come from the Google callback, the password flow is never served
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login/google"
)


def open_session() -> Session:
    return Session(engine)


dispatcher = Dispatcher(
    hub=hub,
    transport=ExpoPushTransport(),
    session_factory=open_session,
)


def get_session() -> Generator[Session, None, None]:
    with open_session() as session:
        yield session


def get_session_factory() -> Callable[[], Session]:
    return open_session


def get_dispatcher() -> Dispatcher:
    return dispatcher


SessionDep = Annotated[Session, Depends(get_session)]
TokenDep = Annotated[str, Depends(reusable_oauth2)]
SessionFactoryDep = Annotated[Callable[[], Session], Depends(get_session_factory)]
DispatcherDep = Annotated[Dispatcher, Depends(get_dispatcher)]


def session_from_token(session: Session, token: str) -> SessionContext:
    credentials_error = HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Could not validate credentials",
    )
    try:
        payload = decode_access_token(token)
        user_id = int(payload["sub"])
        session_id = str(payload["sid"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise credentials_error

    context = sessions.resolve(session, user_id, session_id)
    if not context:
        raise credentials_error
    return context


def get_session_context(session: SessionDep, token: TokenDep) -> SessionContext:
    return session_from_token(session, token)


CurrentSession = Annotated[SessionContext, Depends(get_session_context)]


def get_current_user(context: CurrentSession) -> User:
    return context.user


CurrentUser = Annotated[User, Depends(get_current_user)]
