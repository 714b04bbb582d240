"""
Event Broadcaster

Fan-out of order events to every currently connected subscriber (kitchen
boards, customer order trackers). Delivery is best effort: no
acknowledgement, no retry, no replay for subscribers that connect later.
Clients that need current state fetch it from the order API on connect.

A subscriber is anything with an `async send_text(str)` method; Starlette
WebSockets qualify as-is.
"""

import json
import logging
from functools import lru_cache
from typing import Protocol

from quickserve.domain.events import OrderEvent

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    async def send_text(self, data: str) -> None:
        ...


class EventBroadcaster:
    """
    Manages connected subscribers and broadcasts events to all of them.

    Events published from one process reach each subscriber in publish
    order. A subscriber whose send fails is dropped.
    """

    def __init__(self):
        self.subscribers: list[Subscriber] = []

    @property
    def subscriber_count(self) -> int:
        return len(self.subscribers)

    def connect(self, subscriber: Subscriber) -> None:
        """Add a subscriber. The transport is expected to have accepted it already."""
        self.subscribers.append(subscriber)
        logger.info(f"Subscriber connected. Total subscribers: {self.subscriber_count}")

    def disconnect(self, subscriber: Subscriber) -> None:
        if subscriber in self.subscribers:
            self.subscribers.remove(subscriber)
            logger.info(f"Subscriber disconnected. Remaining subscribers: {self.subscriber_count}")

    async def publish(self, event: OrderEvent) -> int:
        """
        Broadcast an event to all current subscribers.

        Never raises: a failure here must not undo the order change that
        triggered the event.

        Returns:
            int: Number of subscribers the event was handed to
        """
        try:
            message = json.dumps(event.to_message())
        except Exception as e:
            logger.error(f"Could not serialize {event.name} event: {e}")
            return 0

        delivered = 0
        # Copy: failed subscribers are removed while iterating
        for subscriber in list(self.subscribers):
            try:
                await subscriber.send_text(message)
                delivered += 1
            except Exception as e:
                logger.error(f"Error broadcasting {event.name}: {e}")
                self.disconnect(subscriber)

        logger.debug(f"Broadcast {event.name} to {delivered} subscriber(s)")
        return delivered


@lru_cache()
def get_broadcaster() -> EventBroadcaster:
    """Get the process-wide broadcaster."""
    return EventBroadcaster()


def reset_broadcaster() -> None:
    """Clear the cached broadcaster instance."""
    get_broadcaster.cache_clear()
