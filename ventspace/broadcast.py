"""Publish/subscribe fan-out for real-time message delivery.

The broadcaster knows nothing about the transport: each subscriber gets a
bounded queue and the WebSocket route drains it. Publishing never blocks;
an event that does not fit in a subscriber's queue is dropped for that
subscriber only. Nothing is replayed to late subscribers.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


class Subscription:
    """A live subscriber's view of the event stream."""

    def __init__(self, broadcaster: Broadcaster, maxsize: int) -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def deliver(self, event: dict[str, Any]) -> bool:
        """Queue an event without waiting. Returns False if it was dropped."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    async def get(self) -> dict[str, Any]:
        """Wait for the next event."""
        return await self._queue.get()

    def close(self) -> None:
        """Stop receiving events."""
        self._broadcaster.unsubscribe(self)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> dict[str, Any]:
        return await self.get()


class Broadcaster:
    """Delivers every published event to all current subscribers."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self.queue_size = queue_size
        self._subscribers: set[Subscription] = set()
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """Register a new subscriber. It sees only events published from now on."""
        subscription = Subscription(self, self.queue_size)
        with self._lock:
            self._subscribers.add(subscription)
        logger.info(f"Subscriber connected, total={self.subscriber_count}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription not in self._subscribers:
                return
            self._subscribers.discard(subscription)
        logger.info(f"Subscriber disconnected, total={self.subscriber_count}")

    def publish(self, event: dict[str, Any]) -> int:
        """Fan an event out to every subscriber.

        Must be called from the event loop that owns the subscriber queues.

        Returns:
            Number of subscribers the event was queued for
        """
        with self._lock:
            subscribers = list(self._subscribers)

        delivered = 0
        for subscription in subscribers:
            if subscription.deliver(event):
                delivered += 1
            else:
                logger.warning(f"Subscriber queue full, dropped event (dropped={subscription.dropped})")
        logger.debug(f"Published event to {delivered}/{len(subscribers)} subscribers")
        return delivered
