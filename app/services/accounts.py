import logging
import secrets
import string
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlmodel import Session, col, select

from app.core.config import settings
from app.core.errors import (
    CodeGenerationExhausted,
    NotFound,
    NotPaired,
    PairingConflict,
    SelfPairingRejected,
)
from app.models.user import User, utcnow

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code(length: Optional[int] = None) -> str:
    length = length or settings.INVITE_CODE_LENGTH
    return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def create_user(
    session: Session,
    *,
    email: str,
    display_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
    email_verified: bool = False,
    code_factory: Callable[[], str] = generate_invite_code,
) -> User:
    """
    Create an account with a fresh invite code.

    Code collisions are detected by the unique index on ``invite_code``; the
    insert is retried with a new code up to ``INVITE_CODE_MAX_ATTEMPTS`` times.
    """
    for attempt in range(1, settings.INVITE_CODE_MAX_ATTEMPTS + 1):
        code = code_factory()
        user = User(
            email=email,
            display_name=display_name,
            avatar_url=avatar_url,
            email_verified=email_verified,
            invite_code=code,
        )
        session.add(user)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            if session.exec(select(User).where(User.invite_code == code)).first() is None:
                raise
            logger.warning("Invite code collision on attempt %d, retrying", attempt)
            continue
        session.refresh(user)
        logger.info("Created user %s", user.id)
        return user

    raise CodeGenerationExhausted()


def get_profile(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def get_by_invite_code(session: Session, code: str) -> Optional[User]:
    return session.exec(select(User).where(User.invite_code == code)).first()


def update_partner(session: Session, user_id: int, partner_id: int) -> None:
    """
    Link two users to each other in a single transaction.

    Each side is set with a conditional update that only applies while the
    row is still unpaired, so a concurrent pairing that got there first makes
    the whole transaction roll back instead of leaving one side linked.
    """
    if user_id == partner_id:
        raise SelfPairingRejected()

    now = utcnow()
    conn = session.connection()
    try:
        # Fixed lock order across concurrent pairings
        for left, right in sorted([(user_id, partner_id), (partner_id, user_id)]):
            result = conn.execute(
                update(User)
                .where(col(User.id) == left, col(User.partner_id).is_(None))
                .values(partner_id=right, paired_at=now)
            )
            if result.rowcount != 1:
                raise PairingConflict()
    except PairingConflict:
        session.rollback()
        logger.info("Pairing %s <-> %s lost a race", user_id, partner_id)
        raise
    except DBAPIError as exc:
        session.rollback()
        logger.warning("Pairing %s <-> %s failed in the database: %s", user_id, partner_id, exc)
        raise PairingConflict() from exc

    session.commit()
    logger.info("Paired users %s and %s", user_id, partner_id)


def clear_partner(session: Session, user: User) -> None:
    if not user.partner_id:
        raise NotPaired("Not paired")

    user_id, partner_id = user.id, user.partner_id
    conn = session.connection()
    for left, right in sorted([(user_id, partner_id), (partner_id, user_id)]):
        conn.execute(
            update(User)
            .where(col(User.id) == left, col(User.partner_id) == right)
            .values(partner_id=None, paired_at=None)
        )
    session.commit()
    logger.info("Unpaired users %s and %s", user_id, partner_id)


def update_profile(
    session: Session,
    user: User,
    *,
    display_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> User:
    if display_name is not None:
        user.display_name = display_name
    if avatar_url is not None:
        user.avatar_url = avatar_url
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def set_push_token(session: Session, user: User, token: Optional[str]) -> User:
    user.push_token = token
    session.add(user)
    session.commit()
    session.refresh(user)
    return user
