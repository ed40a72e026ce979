"""
Invite code redemption.

A code reaches the server typed by hand, scanned from a QR code (the invite
URL), opened as a deep link, or stashed for a device that was not signed in
yet. All of them go through ``normalize_code`` and ``validate_code`` before
the database is touched.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import unquote, urlparse

from sqlmodel import Session

from app.core.config import settings
from app.core.errors import (
    AlreadyPaired,
    CodeNotFound,
    InvalidCodeFormat,
    NotFound,
    SelfPairingRejected,
)
from app.models.pending_invite import PendingInvite
from app.models.user import User, utcnow
from app.services import accounts

logger = logging.getLogger(__name__)


def normalize_code(raw: Optional[str]) -> str:
    """
    Trim the input and, if it is a URL, keep its last path segment.

    ``https://gratitudebee.app/invite/XYZ789`` and
    ``com.gratitudebee://invite/XYZ789`` both give ``XYZ789``.
    """
    candidate = (raw or "").strip()
    if "://" not in candidate:
        return candidate

    parsed = urlparse(candidate)
    if parsed.path:
        code = parsed.path.rsplit("/", 1)[-1]
    elif parsed.scheme not in ("http", "https"):
        # com.gratitudebee://XYZ789
        code = parsed.netloc
    else:
        code = ""
    return unquote(code).strip()


def validate_code(code: str) -> str:
    if not code or len(code) < settings.INVITE_CODE_MIN_LENGTH:
        raise InvalidCodeFormat()
    return code


def invite_url(code: str) -> str:
    return f"{settings.INVITE_BASE_URL.rstrip('/')}/{code}"


def deep_link(code: str) -> str:
    return f"{settings.APP_SCHEME}://invite/{code}"


def _lookup_owner(session: Session, raw: Optional[str]) -> User:
    code = validate_code(normalize_code(raw))
    owner = accounts.get_by_invite_code(session, code)
    if not owner:
        raise CodeNotFound()
    return owner


def preview_invite(session: Session, raw: Optional[str]) -> User:
    return _lookup_owner(session, raw)


def redeem_invite(session: Session, user: User, raw: Optional[str]) -> User:
    """
    Pair ``user`` with the owner of the invite code and return the partner.
    """
    owner = _lookup_owner(session, raw)

    if owner.id == user.id:
        raise SelfPairingRejected()
    if user.partner_id:
        raise AlreadyPaired("You are already paired")
    if owner.partner_id:
        raise AlreadyPaired("This invite belongs to someone who is already paired")

    accounts.update_partner(session, user.id, owner.id)
    session.refresh(user)
    session.refresh(owner)
    return owner


def stash_pending_invite(session: Session, device_id: str, raw: Optional[str]) -> PendingInvite:
    code = validate_code(normalize_code(raw))
    pending = session.get(PendingInvite, device_id)
    if pending:
        pending.code = code
        pending.stored_at = utcnow()
    else:
        pending = PendingInvite(device_id=device_id, code=code)
    session.add(pending)
    session.commit()
    session.refresh(pending)
    logger.info("Stored pending invite for device %s", device_id)
    return pending


def _is_expired(pending: PendingInvite) -> bool:
    stored_at = pending.stored_at
    if stored_at.tzinfo is None:
        stored_at = stored_at.replace(tzinfo=timezone.utc)
    age = datetime.now(timezone.utc) - stored_at
    return age > timedelta(hours=settings.PENDING_INVITE_TTL_HOURS)


def consume_pending_invite(session: Session, device_id: str) -> Optional[PendingInvite]:
    """
    Read and delete the device's pending invite in one commit.

    Returns ``None`` if nothing is stored or the stored invite expired.
    """
    pending = session.get(PendingInvite, device_id)
    if not pending:
        return None

    consumed = PendingInvite(
        device_id=pending.device_id, code=pending.code, stored_at=pending.stored_at
    )
    session.delete(pending)
    session.commit()

    if _is_expired(consumed):
        logger.info("Discarded expired pending invite for device %s", device_id)
        return None
    return consumed


def redeem_pending_invite(session: Session, user: User, device_id: str) -> User:
    pending = consume_pending_invite(session, device_id)
    if not pending:
        raise NotFound("No pending invite for this device")
    return redeem_invite(session, user, pending.code)
