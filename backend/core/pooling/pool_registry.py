"""Pool Registry - authoritative store of active pools and pooled requests.

The registry owns the id -> Pool map. Every membership mutation runs with the
pool's lock held and ends with the injected recompute hook, so a pool is
never visible with derived fields stale relative to its members, and a pool
that loses its last member is deleted instead of stored empty.
"""

from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional
import logging
import threading
import uuid

from ..models.domain import (
    Pool,
    PoolRequest,
    RequestStatus,
    REQUEST_TRANSITIONS,
    utc_now,
)
from .exceptions import (
    PoolCapacityError,
    PoolNotFoundError,
    InvalidTransitionError,
)

logger = logging.getLogger(__name__)

RecomputeHook = Callable[[Pool], None]


class PoolRegistry:
    """In-memory collection of active pools and their requests."""

    def __init__(self, recompute: RecomputeHook, max_pool_size: int = 3):
        """Initialize registry.

        Args:
            recompute: Called with the pool after every membership change
            max_pool_size: Hard cap on members per pool
        """
        self._recompute = recompute
        self.max_pool_size = max_pool_size

        self._pools: Dict[str, Pool] = {}  # insertion order = first-fit order
        self._requests: Dict[str, PoolRequest] = {}
        self._request_pool: Dict[str, str] = {}  # request_id -> pool_id
        self._status: Dict[str, RequestStatus] = {}

        self._maps_lock = threading.RLock()
        self._pool_locks: Dict[str, threading.RLock] = {}

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def lock(self, pool_id: str) -> Iterator[None]:
        """Hold the per-pool mutation lock."""
        with self._maps_lock:
            pool_lock = self._pool_locks.setdefault(pool_id, threading.RLock())
        with pool_lock:
            yield

    # ------------------------------------------------------------------
    # Request lifecycle
    # ------------------------------------------------------------------

    def register_request(self, request: PoolRequest) -> None:
        with self._maps_lock:
            self._requests[request.request_id] = request
            self._status[request.request_id] = RequestStatus.UNASSIGNED

    def is_tracked(self, request_id: str) -> bool:
        with self._maps_lock:
            return request_id in self._requests

    def request_status(self, request_id: str) -> Optional[RequestStatus]:
        """Current status, or None once the request is removed or unknown."""
        with self._maps_lock:
            return self._status.get(request_id)

    def get_request(self, request_id: str) -> Optional[PoolRequest]:
        with self._maps_lock:
            return self._requests.get(request_id)

    def discard_request(self, request_id: str) -> None:
        """Forget a registered request that never made it into a pool."""
        with self._maps_lock:
            if request_id in self._request_pool:
                return
            self._requests.pop(request_id, None)
            self._status.pop(request_id, None)

    def _transition(self, request_id: str, new_status: RequestStatus) -> None:
        current = self._status.get(request_id, RequestStatus.UNASSIGNED)
        if new_status not in REQUEST_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Request {request_id}: {current.value} -> {new_status.value} not allowed"
            )
        self._status[request_id] = new_status

    def _retire(self, request_id: str) -> None:
        # REMOVED is terminal, so nothing about the request is kept
        self._transition(request_id, RequestStatus.REMOVED)
        del self._status[request_id]
        del self._requests[request_id]

    # ------------------------------------------------------------------
    # Pool mutations
    # ------------------------------------------------------------------

    def create_pool(self, request: PoolRequest, pool_id: Optional[str] = None) -> Pool:
        """Create a single-member pool for request."""
        pool_id = pool_id or f"pool_{uuid.uuid4().hex[:12]}"

        with self.lock(pool_id):
            pool = Pool(pool_id=pool_id, requests=[request])
            try:
                self._recompute(pool)
            except Exception:
                with self._maps_lock:
                    self._pool_locks.pop(pool_id, None)
                raise

            with self._maps_lock:
                self._transition(request.request_id, RequestStatus.POOLED)
                self._pools[pool_id] = pool
                self._request_pool[request.request_id] = pool_id

        logger.info(f"Created pool {pool_id} for request {request.request_id}")
        return pool

    def add_member(self, pool_id: str, request: PoolRequest) -> Pool:
        """Append request to an existing pool."""
        with self.lock(pool_id):
            pool = self.require(pool_id)

            if pool.member_count >= self.max_pool_size:
                raise PoolCapacityError(
                    f"Pool {pool_id} already has {pool.member_count} members"
                )

            pool.requests.append(request)
            try:
                self._recompute(pool)
            except Exception:
                pool.requests.pop()
                raise

            with self._maps_lock:
                self._transition(request.request_id, RequestStatus.POOLED)
                self._request_pool[request.request_id] = pool_id

        logger.info(
            f"Added request {request.request_id} to pool {pool_id} "
            f"(members: {pool.member_count})"
        )
        return pool

    def remove_request(self, request_id: str) -> Optional[Pool]:
        """Remove request from its pool.

        Returns:
            The affected pool (possibly deleted), or None if the request is
            not in any pool
        """
        with self._maps_lock:
            pool_id = self._request_pool.get(request_id)
            if pool_id is None:
                if request_id in self._requests:
                    self._retire(request_id)
                return None

        with self.lock(pool_id):
            pool = self.get(pool_id)
            if pool is None or self.pool_id_for_request(request_id) != pool_id:
                # Removed concurrently
                return None

            pool.requests = [r for r in pool.requests if r.request_id != request_id]

            with self._maps_lock:
                self._retire(request_id)
                del self._request_pool[request_id]

            if not pool.requests:
                self._delete(pool_id)
            else:
                self._recompute(pool)
                logger.info(
                    f"Removed request {request_id} from pool {pool_id} "
                    f"(remaining: {pool.member_count})"
                )

        return pool

    def _delete(self, pool_id: str) -> None:
        with self._maps_lock:
            del self._pools[pool_id]
            self._pool_locks.pop(pool_id, None)
        logger.info(f"Deleted empty pool {pool_id}")

    def recompute(self, pool_id: str) -> Pool:
        """Re-run the recompute hook on an unchanged membership."""
        with self.lock(pool_id):
            pool = self.require(pool_id)
            self._recompute(pool)
        return pool

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, pool_id: str) -> Optional[Pool]:
        with self._maps_lock:
            return self._pools.get(pool_id)

    def require(self, pool_id: str) -> Pool:
        pool = self.get(pool_id)
        if pool is None:
            raise PoolNotFoundError(f"Pool {pool_id} not found", pool_id=pool_id)
        return pool

    def pool_id_for_request(self, request_id: str) -> Optional[str]:
        with self._maps_lock:
            return self._request_pool.get(request_id)

    def active_pools(self) -> List[Pool]:
        """Active pools in insertion order."""
        with self._maps_lock:
            return list(self._pools.values())

    def __len__(self) -> int:
        with self._maps_lock:
            return len(self._pools)

    def get_registry_status(self) -> Dict:
        """Registry summary for monitoring."""
        pools = self.active_pools()
        return {
            "active_pools": len(pools),
            "pooled_requests": sum(p.member_count for p in pools),
            "full_pools": sum(1 for p in pools if p.member_count >= self.max_pool_size),
            "timestamp": utc_now().isoformat(),
        }
