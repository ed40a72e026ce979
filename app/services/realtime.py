"""
In-process pub/sub used for live updates over websockets.

Delivery is best effort and at most once: a message published while nobody is
subscribed is gone, and a subscriber whose queue is full misses it. Clients
catch up by reading the ledger.
"""

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, Set

from app.core.config import settings

logger = logging.getLogger(__name__)


def user_topic(user_id: int) -> str:
    return f"user:{user_id}"


class Subscription:
    def __init__(self, topic: str, loop: asyncio.AbstractEventLoop, maxsize: int):
        self.topic = topic
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def offer(self, payload: Dict[str, Any]) -> None:
        # publish() may run in a worker thread
        self.loop.call_soon_threadsafe(self._put, payload)

    def _put(self, payload: Dict[str, Any]) -> None:
        try:
            self.queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Realtime queue full on %s, dropping message", self.topic)

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()


class RealtimeHub:
    def __init__(self, queue_size: int | None = None):
        self.queue_size = queue_size or settings.REALTIME_QUEUE_SIZE
        self._subscribers: Dict[str, Set[Subscription]] = defaultdict(set)
        self._lock = threading.Lock()

    def subscribe(self, topic: str) -> Subscription:
        """Must be called from the event loop that will consume the subscription."""
        subscription = Subscription(topic, asyncio.get_running_loop(), self.queue_size)
        with self._lock:
            self._subscribers[topic].add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.topic)
            if subscribers is None:
                return
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[subscription.topic]

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))

    def publish(self, topic: str, payload: Dict[str, Any]) -> int:
        """Hand ``payload`` to every current subscriber of ``topic``; returns how many."""
        with self._lock:
            subscribers = list(self._subscribers.get(topic, ()))

        delivered = 0
        for subscription in subscribers:
            try:
                subscription.offer(payload)
            except RuntimeError:
                # Loop already closed, the websocket went away without unsubscribing
                self.unsubscribe(subscription)
                continue
            delivered += 1
        return delivered


hub = RealtimeHub()
