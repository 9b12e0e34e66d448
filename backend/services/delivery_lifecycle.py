"""Delivery lifecycle intake for the pooling engine.

Consumes RequestCreated / RequestCancelled events from the delivery
lifecycle, feeds them through the engine one at a time, and owns the
periodic expiry of requests that waited past their budget.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Deque, Dict, List, Optional, Union
import logging
import threading

from ..core.models.domain import Pool, PoolRequest, as_utc, utc_now
from ..core.pooling import PoolingEngine, PoolingError, PoolNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 1000


class LifecycleEventType(str, Enum):
    """Lifecycle events consumed by the engine."""

    REQUEST_CREATED = "request_created"
    REQUEST_CANCELLED = "request_cancelled"


@dataclass
class RequestCreated:
    request: PoolRequest
    timestamp: datetime = field(default_factory=utc_now)
    event_type: LifecycleEventType = LifecycleEventType.REQUEST_CREATED


@dataclass
class RequestCancelled:
    request_id: str
    timestamp: datetime = field(default_factory=utc_now)
    event_type: LifecycleEventType = LifecycleEventType.REQUEST_CANCELLED


LifecycleEvent = Union[RequestCreated, RequestCancelled]


@dataclass
class ProcessedEvent:
    """Record of a processed lifecycle event."""

    event: LifecycleEvent
    pool_id: Optional[str]
    success: bool
    error: Optional[str] = None
    processed_at: datetime = field(default_factory=utc_now)


class DeliveryLifecycleService:
    """Routes lifecycle events into the pooling engine (FIFO)."""

    def __init__(self, engine: PoolingEngine, history_size: int = DEFAULT_HISTORY_SIZE):
        self.engine = engine
        self.event_queue: List[LifecycleEvent] = []
        # Most recent outcomes only; totals are counted separately
        self.processed_events: Deque[ProcessedEvent] = deque(maxlen=history_size)
        self.processed_total = 0
        self.failed_total = 0
        self._queue_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Direct entry points
    # ------------------------------------------------------------------

    def create_request(self, request: PoolRequest) -> str:
        """Handle RequestCreated: returns the pool id."""
        return self.engine.add_request(request)

    def cancel_request(self, request_id: str) -> Pool:
        """Handle RequestCancelled.

        Returns:
            Snapshot of the affected pool taken before removal

        Raises:
            PoolNotFoundError: request is not in any pool
        """
        pool = self.engine.find_pool_for_request(request_id)
        if pool is None:
            raise PoolNotFoundError(
                f"No pool found for request {request_id}", request_id=request_id
            )

        self.engine.remove_request(request_id)
        logger.info(f"Cancelled request {request_id} (pool {pool.pool_id})")
        return pool

    # ------------------------------------------------------------------
    # Queued processing
    # ------------------------------------------------------------------

    def submit_event(self, event: LifecycleEvent) -> int:
        """Queue event; returns its queue position."""
        with self._queue_lock:
            self.event_queue.append(event)
            position = len(self.event_queue)
        logger.info(f"Lifecycle event submitted: {event.event_type.value} (position {position})")
        return position

    def process_event(self, event: LifecycleEvent) -> ProcessedEvent:
        try:
            if isinstance(event, RequestCreated):
                pool_id = self.create_request(event.request)
            else:
                pool_id = self.cancel_request(event.request_id).pool_id
            result = ProcessedEvent(event=event, pool_id=pool_id, success=True)
        except PoolingError as e:
            logger.warning(f"Lifecycle event {event.event_type.value} failed: {e}")
            result = ProcessedEvent(event=event, pool_id=None, success=False, error=str(e))

        self.processed_events.append(result)
        self.processed_total += 1
        if not result.success:
            self.failed_total += 1
        return result

    def process_all_events(self) -> List[ProcessedEvent]:
        """Process queued events in arrival order."""
        with self._queue_lock:
            pending, self.event_queue = self.event_queue, []

        return [self.process_event(event) for event in pending]

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    def expire_stale_requests(self, now: Optional[datetime] = None) -> List[str]:
        """Cancel requests still alone in their pool past their wait budget.

        Returns:
            Ids of cancelled requests
        """
        now = as_utc(now) if now else utc_now()
        expired = []

        for pool in self.engine.list_active_pools():
            if pool.member_count != 1:
                continue

            request = pool.requests[0]
            deadline = request.created_at + timedelta(minutes=request.max_wait_minutes)
            if now > deadline and self.engine.remove_if_alone(request.request_id):
                expired.append(request.request_id)
                logger.info(
                    f"Expired request {request.request_id} "
                    f"(waited past {request.max_wait_minutes:g} min)"
                )

        return expired

    def get_queue_status(self) -> Dict[str, Any]:
        with self._queue_lock:
            queued = len(self.event_queue)
        return {
            "total_queued": queued,
            "processed_total": self.processed_total,
            "failed_total": self.failed_total,
        }
