"""
Append-only record of everything partners send each other.

Events are never updated except for the single response and the single
acknowledgement a receiver may attach. Both are written with conditional
updates so that only one of two concurrent callers wins.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import update
from sqlmodel import Session, col, or_, select

from app.core.errors import (
    AlreadyResponded,
    Forbidden,
    InvalidContent,
    NotFound,
    NotPaired,
)
from app.models.event import Acknowledgement, Event, EventResponse, EventType
from app.models.user import User, naive_utc, utcnow

logger = logging.getLogger(__name__)

# Types a client may send directly; the rest are replies
SENDABLE_TYPES = frozenset({
    EventType.APPRECIATION,
    EventType.FAVOR_REQUEST,
    EventType.PING,
    EventType.DONT_PANIC,
    EventType.WISDOM,
})

ALLOWED_RESPONSES: Dict[EventType, Dict[EventResponse, EventType]] = {
    EventType.FAVOR_REQUEST: {
        EventResponse.ACCEPT: EventType.FAVOR_ACCEPTED,
        EventResponse.DECLINE: EventType.FAVOR_DECLINED,
    },
    EventType.DONT_PANIC: {EventResponse.THANK_YOU: EventType.THANK_YOU},
    EventType.WISDOM: {EventResponse.THANK_YOU: EventType.THANK_YOU},
}

ACKNOWLEDGEABLE_TYPES = frozenset({
    EventType.APPRECIATION,
    EventType.PING,
    EventType.FAVOR_ACCEPTED,
    EventType.FAVOR_DECLINED,
})

ACKNOWLEDGEMENT_EVENTS = {
    Acknowledgement.THANK_YOU: EventType.THANK_YOU,
    Acknowledgement.REACTION: EventType.REACTION,
}

MAX_REACTION_LENGTH = 32

# (field, type, required)
CONTENT_RULES: Dict[EventType, List[Tuple[str, type, bool]]] = {
    EventType.APPRECIATION: [("title", str, True), ("points", int, False)],
    EventType.FAVOR_REQUEST: [
        ("title", str, True),
        ("points", int, True),
        ("description", str, False),
    ],
    EventType.PING: [("description", str, False)],
    EventType.DONT_PANIC: [("description", str, True)],
    EventType.WISDOM: [("description", str, True)],
    EventType.FAVOR_ACCEPTED: [("original_event_id", int, True)],
    EventType.FAVOR_DECLINED: [("original_event_id", int, True)],
    EventType.THANK_YOU: [("original_event_id", int, True)],
    EventType.REACTION: [("original_event_id", int, True), ("reaction", str, True)],
}


def validate_content(event_type: EventType, content: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if content is None:
        content = {}
    if not isinstance(content, dict):
        raise InvalidContent("Event content must be an object")

    for field, kind, required in CONTENT_RULES.get(event_type, []):
        value = content.get(field)
        if value is None:
            if required:
                raise InvalidContent(f"{event_type.value} requires '{field}'")
            continue
        if kind is int:
            # bool is an int subclass
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidContent(f"'{field}' must be a non-negative integer")
        elif not isinstance(value, str) or not value.strip():
            raise InvalidContent(f"'{field}' must be a non-empty string")

    if event_type == EventType.FAVOR_REQUEST and content["points"] == 0:
        raise InvalidContent("A favor must be worth at least one point")
    return content


def _ensure_paired(session: Session, sender_id: int, receiver_id: int) -> None:
    sender = session.get(User, sender_id)
    receiver = session.get(User, receiver_id)
    if (
        not sender
        or not receiver
        or sender.partner_id != receiver.id
        or receiver.partner_id != sender.id
    ):
        raise NotPaired()


def _append(
    session: Session,
    sender_id: int,
    receiver_id: int,
    event_type: EventType,
    content: Optional[Dict[str, Any]],
) -> Event:
    content = validate_content(event_type, content)
    _ensure_paired(session, sender_id, receiver_id)
    event = Event(
        type=event_type,
        sender_id=sender_id,
        receiver_id=receiver_id,
        content=dict(content),
    )
    session.add(event)
    session.flush()
    return event


def create_event(
    session: Session,
    sender: User,
    receiver_id: int,
    event_type: EventType,
    content: Optional[Dict[str, Any]] = None,
) -> Event:
    event = _append(session, sender.id, receiver_id, event_type, content)
    session.commit()
    session.refresh(event)
    logger.info("Event %s (%s) %s -> %s", event.id, event.type.value, event.sender_id, event.receiver_id)
    return event


def _get_for_receiver(session: Session, event_id: int, responder: User) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise NotFound("Event not found")
    if event.receiver_id != responder.id:
        raise Forbidden("Only the receiver can reply to this event")
    return event


def respond_to_event(
    session: Session,
    event_id: int,
    responder: User,
    response: EventResponse,
) -> Tuple[Event, Event]:
    """
    Record the receiver's one response and append the reply event.

    Returns the original event and the reply sent back to its sender.
    """
    event = _get_for_receiver(session, event_id, responder)
    replies = ALLOWED_RESPONSES.get(event.type)
    if replies is None:
        raise InvalidContent(f"{event.type.value} events do not take a response")
    reply_type = replies.get(response)
    if reply_type is None:
        raise InvalidContent(f"'{response.value}' is not a valid response to {event.type.value}")
    if event.responded_at is not None:
        raise AlreadyResponded()
    _ensure_paired(session, responder.id, event.sender_id)

    result = session.connection().execute(
        update(Event)
        .where(col(Event.id) == event.id, col(Event.responded_at).is_(None))
        .values(response=response, responded_at=utcnow())
    )
    if result.rowcount != 1:
        session.rollback()
        raise AlreadyResponded()

    reply_content = {"original_event_id": event.id}
    for key in ("title", "points"):
        if key in event.content:
            reply_content[key] = event.content[key]

    reply = _append(session, responder.id, event.sender_id, reply_type, reply_content)
    session.commit()
    session.refresh(event)
    session.refresh(reply)
    logger.info("Event %s answered with %s by %s", event.id, response.value, responder.id)
    return event, reply


def acknowledge_event(
    session: Session,
    event_id: int,
    responder: User,
    kind: Acknowledgement,
    reaction: Optional[str] = None,
) -> Tuple[Event, Event]:
    """
    Attach a thank-you or a reaction to a received event, once.
    """
    event = _get_for_receiver(session, event_id, responder)
    if event.type not in ACKNOWLEDGEABLE_TYPES:
        raise InvalidContent(f"{event.type.value} events cannot be acknowledged")
    if kind == Acknowledgement.REACTION:
        reaction = (reaction or "").strip()
        if not reaction or len(reaction) > MAX_REACTION_LENGTH:
            raise InvalidContent("A reaction needs a short non-empty value")
    else:
        reaction = None
    if event.acknowledged_at is not None:
        raise AlreadyResponded("This event was already acknowledged")
    _ensure_paired(session, responder.id, event.sender_id)

    result = session.connection().execute(
        update(Event)
        .where(col(Event.id) == event.id, col(Event.acknowledged_at).is_(None))
        .values(acknowledgement=kind, acknowledged_at=utcnow(), reaction=reaction)
    )
    if result.rowcount != 1:
        session.rollback()
        raise AlreadyResponded("This event was already acknowledged")

    reply_content: Dict[str, Any] = {"original_event_id": event.id}
    if "title" in event.content:
        reply_content["original_title"] = event.content["title"]
    if reaction:
        reply_content["reaction"] = reaction

    reply = _append(
        session, responder.id, event.sender_id, ACKNOWLEDGEMENT_EVENTS[kind], reply_content
    )
    session.commit()
    session.refresh(event)
    session.refresh(reply)
    return event, reply


def get_event(session: Session, event_id: int, viewer: User) -> Event:
    event = session.get(Event, event_id)
    if not event or viewer.id not in (event.sender_id, event.receiver_id):
        raise NotFound("Event not found")
    return event


def list_events(
    session: Session,
    user_id: int,
    *,
    types: Optional[Iterable[EventType]] = None,
    since: Optional[datetime] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[Event]:
    query = select(Event).where(
        or_(Event.sender_id == user_id, Event.receiver_id == user_id)
    )
    if types:
        query = query.where(col(Event.type).in_(list(types)))
    if since is not None:
        query = query.where(Event.created_at >= naive_utc(since))
    query = query.order_by(col(Event.created_at).desc(), col(Event.id).desc())
    return list(session.exec(query.offset(offset).limit(limit)).all())
