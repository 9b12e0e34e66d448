"""Typed pool lifecycle events delivered through bounded subscriber queues."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
import logging
import queue
import threading

from ..models.domain import Pool, utc_now

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256


class PoolEventType(str, Enum):
    """Pool lifecycle event types."""

    POOL_CREATED = "pool_created"
    POOL_UPDATED = "pool_updated"
    POOL_DELETED = "pool_deleted"


@dataclass
class PoolEvent:
    """Pool change notification.

    ``pool`` is a detached snapshot taken after recompute; it is None for
    POOL_DELETED.
    """

    event_type: PoolEventType
    pool_id: str
    pool: Optional[Pool] = None
    request_id: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)


class PoolEventSubscription:
    """A subscriber's bounded queue of pool events."""

    def __init__(self, name: str, maxsize: int = DEFAULT_QUEUE_SIZE):
        self.name = name
        self._queue: "queue.Queue[PoolEvent]" = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def offer(self, event: PoolEvent) -> None:
        """Enqueue event, dropping the oldest one when full."""
        while True:
            try:
                self._queue.put_nowait(event)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    continue
                self.dropped += 1
                logger.warning(
                    f"Subscriber {self.name} queue full - dropped oldest event "
                    f"(dropped total: {self.dropped})"
                )

    def get(self, timeout: Optional[float] = None) -> Optional[PoolEvent]:
        """Next event, or None if none arrives within timeout."""
        try:
            return self._queue.get(timeout=timeout) if timeout else self._queue.get_nowait()
        except queue.Empty:
            return None

    def drain(self) -> List[PoolEvent]:
        """All pending events in publish order."""
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def pending(self) -> int:
        return self._queue.qsize()


class PoolEventBus:
    """Fan-out of pool events to named subscribers."""

    def __init__(self):
        self._subscriptions: Dict[str, PoolEventSubscription] = {}
        self._lock = threading.Lock()
        self.published_total = 0

    def subscribe(self, name: str, maxsize: int = DEFAULT_QUEUE_SIZE) -> PoolEventSubscription:
        with self._lock:
            if name in self._subscriptions:
                return self._subscriptions[name]
            subscription = PoolEventSubscription(name, maxsize=maxsize)
            self._subscriptions[name] = subscription
        logger.info(f"Pool event subscriber registered: {name} (queue size {maxsize})")
        return subscription

    def unsubscribe(self, name: str) -> None:
        with self._lock:
            self._subscriptions.pop(name, None)

    def publish(self, event: PoolEvent) -> None:
        with self._lock:
            subscribers = list(self._subscriptions.values())
            self.published_total += 1

        for subscription in subscribers:
            subscription.offer(event)

        logger.debug(
            f"Published {event.event_type.value} for pool {event.pool_id} "
            f"to {len(subscribers)} subscribers"
        )

    def get_status(self) -> Dict:
        with self._lock:
            return {
                "subscribers": {
                    name: {"pending": s.pending(), "dropped": s.dropped}
                    for name, s in self._subscriptions.items()
                },
                "published_total": self.published_total,
            }
