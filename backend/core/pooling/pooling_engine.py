"""Pool Assignment Engine.

Workflow for a new request:
1. Iterate active pools in registry insertion order (first-fit)
2. Skip full pools
3. Skip pools whose delay budget cannot absorb the extra stops
4. Skip pools scoring below the compatibility threshold
5. Skip pools whose per-customer cost would rise too much
6. Join the first pool passing every filter, else create a new pool

First-fit is intentional: the first qualifying pool wins even if a later
pool would score higher, so results depend on arrival order.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import logging
import threading

from ..models.domain import Pool, PoolRequest, utc_now
from .compatibility import CompatibilityScorer
from .cost_allocator import CostAllocator
from .events import PoolEvent, PoolEventBus, PoolEventType
from .exceptions import DuplicateRequestError
from .pool_registry import PoolRegistry
from .sequence_optimizer import RouteOptimizer

logger = logging.getLogger(__name__)


@dataclass
class PoolConfiguration:
    """Configuration for pool assignment behavior."""

    max_pool_size: int = 3

    # Additional delay model (fixed, independent of geometry)
    extra_stops_per_join: int = 2  # pickup + dropoff
    minutes_per_stop: float = 5.0
    route_deviation_minutes: float = 10.0

    # Platform-wide delay ceiling, off unless enforced
    max_additional_delay_minutes: float = 15.0
    enforce_platform_delay_ceiling: bool = False

    # Route similarity and cost fairness
    min_compatibility_score: float = 0.70
    max_cost_increase_ratio: float = 1.10


@dataclass
class CandidateEvaluation:
    """Outcome of running the intake filters for one pool."""

    pool_id: str
    accepted: bool
    reason: str
    additional_delay_minutes: Optional[float] = None
    compatibility_score: Optional[float] = None
    projected_cost_per_customer: Optional[float] = None


class PoolingEngine:
    """Assigns incoming requests to pools and keeps pool state consistent."""

    def __init__(
        self,
        config: Optional[PoolConfiguration] = None,
        scorer: Optional[CompatibilityScorer] = None,
        optimizer: Optional[RouteOptimizer] = None,
        allocator: Optional[CostAllocator] = None,
        event_bus: Optional[PoolEventBus] = None,
    ):
        """Initialize pooling engine with its own registry."""
        self.config = config or PoolConfiguration()
        self.scorer = scorer or CompatibilityScorer()
        self.optimizer = optimizer or RouteOptimizer()
        self.allocator = allocator or CostAllocator()
        self.event_bus = event_bus or PoolEventBus()
        self.registry = PoolRegistry(self.recompute, max_pool_size=self.config.max_pool_size)

        # First-fit selection and the join happen as one step
        self._intake_lock = threading.RLock()

        logger.info(
            f"Pooling engine initialized (max size {self.config.max_pool_size}, "
            f"score threshold {self.config.min_compatibility_score})"
        )

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    def add_request(self, request: PoolRequest) -> str:
        """Place request into a compatible pool or a new one.

        Returns:
            Pool id the request now belongs to
        """
        with self._intake_lock:
            if self.registry.is_tracked(request.request_id):
                raise DuplicateRequestError(
                    f"Request {request.request_id} is already pooled"
                )

            logger.info(f"Processing new pool request: {request.request_id}")
            self.registry.register_request(request)

            try:
                pool, event_type = self._place(request)
            except Exception:
                self.registry.discard_request(request.request_id)
                raise

            self._publish(event_type, pool, request.request_id)
            return pool.pool_id

    def _place(self, request: PoolRequest) -> Tuple[Pool, PoolEventType]:
        matching_pool = self.find_matching_pool(request)

        if matching_pool:
            pool = self.registry.add_member(matching_pool.pool_id, request)
            logger.info(
                f"Request {request.request_id} joined pool {pool.pool_id} "
                f"({pool.member_count} members, "
                f"{pool.cost_per_customer:.2f}/customer, savings {pool.savings:.2f})"
            )
            return pool, PoolEventType.POOL_UPDATED

        pool = self.registry.create_pool(request)
        logger.info(
            f"No compatible pool for {request.request_id} - "
            f"created pool {pool.pool_id}"
        )
        return pool, PoolEventType.POOL_CREATED

    def remove_if_alone(self, request_id: str) -> bool:
        """Remove request only if it is the sole member of its pool.

        Membership is checked under the intake lock, so a concurrent join
        cannot slip in between the check and the removal.
        """
        with self._intake_lock:
            pool = self.find_pool_for_request(request_id)
            if pool is None or pool.member_count != 1:
                return False

            self.remove_request(request_id)
            return True

    def remove_request(self, request_id: str) -> None:
        """Remove request from its pool; unknown ids are ignored."""
        with self._intake_lock:
            pool = self.registry.remove_request(request_id)

            if pool is None:
                logger.debug(f"Remove ignored: request {request_id} not pooled")
                return

            if pool.requests:
                self._publish(PoolEventType.POOL_UPDATED, pool, request_id)
            else:
                self._publish(PoolEventType.POOL_DELETED, pool, request_id)

    def get_pool(self, pool_id: str) -> Optional[Pool]:
        """Snapshot of pool, or None if not found."""
        pool = self.registry.get(pool_id)
        return pool.snapshot() if pool else None

    def require_pool(self, pool_id: str) -> Pool:
        """Snapshot of pool; raises PoolNotFoundError if unknown."""
        return self.registry.require(pool_id).snapshot()

    def list_active_pools(self) -> List[Pool]:
        """Snapshots of active pools in registry order."""
        return [pool.snapshot() for pool in self.registry.active_pools()]

    def find_pool_for_request(self, request_id: str) -> Optional[Pool]:
        pool_id = self.registry.pool_id_for_request(request_id)
        return self.get_pool(pool_id) if pool_id else None

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def recompute(self, pool: Pool) -> None:
        """Refresh route, distance, time, cost and savings from membership.

        Single entry point for derived fields; the registry calls it after
        every membership change.
        """
        route = self.optimizer.optimize(pool.requests)
        breakdown = self.allocator.allocate_route(pool.requests, route)

        pool.route = route
        pool.total_distance_km = breakdown.total_distance_km
        pool.estimated_time_minutes = breakdown.estimated_time_minutes
        pool.cost_per_customer = breakdown.cost_per_customer
        pool.savings = breakdown.savings
        pool.updated_at = utc_now()

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def find_matching_pool(self, request: PoolRequest) -> Optional[Pool]:
        """First active pool that passes every intake filter."""
        for pool in self.registry.active_pools():
            evaluation = self.evaluate_candidate(pool, request)
            if evaluation.accepted:
                return pool

            logger.debug(
                f"Pool {pool.pool_id} rejected for {request.request_id}: {evaluation.reason}"
            )

        return None

    def evaluate_candidate(self, pool: Pool, request: PoolRequest) -> CandidateEvaluation:
        """Run the intake filters for one pool, stopping at the first failure."""
        # Filter 1: Capacity
        if pool.member_count >= self.config.max_pool_size:
            return CandidateEvaluation(pool.pool_id, False, "pool at capacity")

        # Filter 2: Delay budget
        delay = self.estimate_additional_delay(pool, request)
        budget = self.delay_budget(pool, request)
        if delay > budget:
            return CandidateEvaluation(
                pool.pool_id,
                False,
                f"additional delay {delay:.0f} min exceeds budget {budget:.0f} min",
                additional_delay_minutes=delay,
            )

        # Filter 3: Route compatibility
        score = self.scorer.score(pool, request)
        if score < self.config.min_compatibility_score:
            return CandidateEvaluation(
                pool.pool_id,
                False,
                f"compatibility {score:.2f} below {self.config.min_compatibility_score:.2f}",
                additional_delay_minutes=delay,
                compatibility_score=score,
            )

        # Filter 4: Cost fairness for existing members
        projected = self.project_cost_per_customer(pool, request)
        limit = pool.cost_per_customer * self.config.max_cost_increase_ratio
        if projected > limit:
            return CandidateEvaluation(
                pool.pool_id,
                False,
                f"projected cost {projected:.2f} exceeds {limit:.2f}",
                additional_delay_minutes=delay,
                compatibility_score=score,
                projected_cost_per_customer=projected,
            )

        return CandidateEvaluation(
            pool.pool_id,
            True,
            "compatible",
            additional_delay_minutes=delay,
            compatibility_score=score,
            projected_cost_per_customer=projected,
        )

    def estimate_additional_delay(self, pool: Pool, request: PoolRequest) -> float:
        """Extra minutes a join adds (fixed model, ignores geometry)."""
        return (
            self.config.extra_stops_per_join * self.config.minutes_per_stop
            + self.config.route_deviation_minutes
        )

    def delay_budget(self, pool: Pool, request: PoolRequest) -> float:
        """Tightest max wait among the members and the candidate."""
        budget = min(r.max_wait_minutes for r in pool.requests + [request])
        if self.config.enforce_platform_delay_ceiling:
            budget = min(budget, self.config.max_additional_delay_minutes)
        return budget

    def project_cost_per_customer(self, pool: Pool, request: PoolRequest) -> float:
        """Per-customer cost if request joined pool (nothing is mutated)."""
        members = pool.requests + [request]
        route = self.optimizer.optimize(members)
        return self.allocator.allocate_route(members, route).cost_per_customer

    # ------------------------------------------------------------------
    # Events and status
    # ------------------------------------------------------------------

    def _publish(self, event_type: PoolEventType, pool: Pool, request_id: str) -> None:
        snapshot = None if event_type == PoolEventType.POOL_DELETED else pool.snapshot()
        self.event_bus.publish(
            PoolEvent(
                event_type=event_type,
                pool_id=pool.pool_id,
                pool=snapshot,
                request_id=request_id,
            )
        )

    def get_engine_status(self) -> Dict:
        """Engine summary for monitoring."""
        status = self.registry.get_registry_status()
        status["events"] = self.event_bus.get_status()
        return status
