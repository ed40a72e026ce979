import logging
import string
from typing import Any, Dict, List, NamedTuple, Optional

from sqlmodel import Session, col, select

from app.core.errors import NotFound
from app.models.event import Event, EventType
from app.models.notification import Notification
from app.models.user import User, utcnow

logger = logging.getLogger(__name__)


class Template(NamedTuple):
    title: str
    body: str
    fallback_body: str
    category: str = "default"


DEFAULT_TEMPLATE = Template(
    title="New GratitudeBee message",
    body="You have a new message from your partner.",
    fallback_body="You have a new message from your partner.",
)

TEMPLATES: Dict[EventType, Template] = {
    EventType.APPRECIATION: Template(
        title="New appreciation from {sender}! 🧡",
        body="You received a {title} badge!",
        fallback_body="They sent you some love.",
        category="appreciation",
    ),
    EventType.FAVOR_REQUEST: Template(
        title="New favor request from {sender}! 🙏",
        body="{title} ({points} points)",
        fallback_body="They need your help with something.",
        category="favor_request",
    ),
    EventType.FAVOR_ACCEPTED: Template(
        title="Favor accepted! ✅",
        body="{sender} accepted \"{title}\".",
        fallback_body="Your partner accepted your favor request.",
        category="favor_response",
    ),
    EventType.FAVOR_DECLINED: Template(
        title="Favor declined ❌",
        body="{sender} declined \"{title}\".",
        fallback_body="Your partner declined your favor request.",
        category="favor_response",
    ),
    EventType.PING: Template(
        title="Ping from {sender}! 👋",
        body="{description}",
        fallback_body="Just saying hi!",
        category="ping_sent",
    ),
    EventType.DONT_PANIC: Template(
        title="A \"Don't Panic\" signal from {sender}! 🐋",
        body="{description}",
        fallback_body="Everything's going to be okay.",
        category="dont_panic",
    ),
    EventType.WISDOM: Template(
        title="Wisdom from {sender}! 🦉",
        body="{description}",
        fallback_body="A piece of wisdom has been shared.",
        category="wisdom",
    ),
    EventType.REACTION: Template(
        title="{sender} reacted {reaction}",
        body="To \"{original_title}\"",
        fallback_body="To something you sent.",
        category="reaction",
    ),
    EventType.THANK_YOU: Template(
        title="{sender} says thank you! ❤️",
        body="For \"{original_title}\"",
        fallback_body="For what you sent.",
    ),
}


class Rendered(NamedTuple):
    title: str
    body: str
    category: str


def _fields(text: str) -> List[str]:
    return [name for _, name, _, _ in string.Formatter().parse(text) if name]


def _fill(text: str, values: Dict[str, Any], fallback: str) -> str:
    if all(values.get(name) not in (None, "") for name in _fields(text)):
        return text.format_map(values)
    return fallback


def render(event_type: Optional[EventType], sender_name: Optional[str], content: Dict[str, Any]) -> Rendered:
    """Title and body for a push about ``event_type``, unknown types use the default."""
    template = TEMPLATES.get(event_type, DEFAULT_TEMPLATE)
    values = dict(content or {})
    values["sender"] = sender_name or "Your partner"
    title = _fill(template.title, values, DEFAULT_TEMPLATE.title)
    body = _fill(template.body, values, template.fallback_body)
    return Rendered(title=title, body=body, category=template.category)


def record(session: Session, event: Event, sender: Optional[User]) -> Notification:
    rendered = render(event.type, sender.display_name if sender else None, event.content)
    notification = Notification(
        recipient_id=event.receiver_id,
        sender_id=event.sender_id,
        event_id=event.id,
        type=event.type,
        title=rendered.title,
        body=rendered.body,
        category=rendered.category,
    )
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification


def list_for(session: Session, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    query = select(Notification).where(Notification.recipient_id == user_id)
    if unread_only:
        query = query.where(col(Notification.read_at).is_(None))
    query = query.order_by(col(Notification.created_at).desc(), col(Notification.id).desc())
    return list(session.exec(query.limit(limit)).all())


def mark_read(session: Session, notification_id: int, user: User) -> Notification:
    notification = session.get(Notification, notification_id)
    if not notification or notification.recipient_id != user.id:
        raise NotFound("Notification not found")
    if notification.read_at is None:
        notification.read_at = utcnow()
        session.add(notification)
        session.commit()
        session.refresh(notification)
    return notification
