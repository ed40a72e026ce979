"""
Fan-out of a freshly recorded event to its receiver.

Runs after the creating request committed. Every channel has its own failure
domain: an error in one is logged and the others still run, and nothing is
reported back to the sender.
"""

import logging
from typing import Any, Callable, Dict, Optional, Protocol

from sqlmodel import Session

from app.models.event import Event
from app.models.user import User
from app.schemas.event import EventRead
from app.services import notifications
from app.services.push import PushMessage
from app.services.realtime import user_topic

logger = logging.getLogger(__name__)


class PushTransport(Protocol):
    def send(self, message: PushMessage) -> Dict[str, Any]: ...


class Publisher(Protocol):
    def publish(self, topic: str, payload: Dict[str, Any]) -> int: ...


class Dispatcher:
    def __init__(
        self,
        hub: Publisher,
        transport: PushTransport,
        session_factory: Callable[[], Session],
    ):
        self.hub = hub
        self.transport = transport
        self.session_factory = session_factory

    def dispatch(self, event_id: int) -> None:
        with self.session_factory() as session:
            event = session.get(Event, event_id)
            if not event:
                logger.error("Dispatch for unknown event %s", event_id)
                return
            sender = session.get(User, event.sender_id)
            receiver = session.get(User, event.receiver_id)
            payload = EventRead.model_validate(event).model_dump(mode="json")

            self._record(session, event, sender)
            self._publish(event, payload)
            self._push(event, sender, receiver)

    def _record(self, session: Session, event: Event, sender: Optional[User]) -> None:
        try:
            notifications.record(session, event, sender)
        except Exception:
            session.rollback()
            logger.exception("Could not store notification for event %s", event.id)

    def _publish(self, event: Event, payload: Dict[str, Any]) -> None:
        try:
            delivered = self.hub.publish(user_topic(event.receiver_id), payload)
        except Exception:
            logger.exception("Realtime publish failed for event %s", event.id)
            return
        logger.debug("Event %s published to %d live subscriber(s)", event.id, delivered)

    def _push(self, event: Event, sender: Optional[User], receiver: Optional[User]) -> None:
        if not receiver or not receiver.push_token:
            logger.info("User %s has no push token, skipping push for event %s", event.receiver_id, event.id)
            return

        rendered = notifications.render(
            event.type, sender.display_name if sender else None, event.content
        )
        message = PushMessage(
            to=receiver.push_token,
            title=rendered.title,
            body=rendered.body,
            data={"eventId": str(event.id)},
        )
        try:
            self.transport.send(message)
        except Exception:
            logger.exception("Push failed for event %s", event.id)
            return
        logger.info("Push sent for event %s", event.id)
