"""Trip cost and per-customer cost share for pools.

The internal model is deliberately simple (base fare + per-km rate over the
great-circle route). It drives pool matching only and is independent of the
customer-facing fare quote in ``backend.core.pricing``.
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging

from ..models.domain import Pool, PoolRequest, RouteStop
from .geometry import haversine_km
from .sequence_optimizer import path_distance

logger = logging.getLogger(__name__)


@dataclass
class CostModel:
    """Rates for the internal pooling cost model (INR)."""

    base_fare: float = 50.0
    per_km_rate: float = 10.0
    minutes_per_km: float = 2.0
    minutes_per_stop: float = 5.0


@dataclass
class CostBreakdown:
    """Derived cost fields for one pool membership."""

    total_distance_km: float
    estimated_time_minutes: float
    trip_cost: float
    cost_per_customer: float
    savings: float


class CostAllocator:
    """Computes trip cost, fair share per customer and savings vs solo."""

    def __init__(self, cost_model: Optional[CostModel] = None):
        self.cost_model = cost_model or CostModel()

    def allocate(self, pool: Pool) -> CostBreakdown:
        return self.allocate_route(pool.requests, pool.route)

    def allocate_route(
        self,
        requests: Sequence[PoolRequest],
        route: Sequence[RouteStop]
    ) -> CostBreakdown:
        """Allocate cost for a membership and its optimized route.

        Args:
            requests: Pool members (at least one)
            route: Optimized stop sequence for those members

        Returns:
            CostBreakdown
        """
        if not requests:
            raise ValueError("Cannot allocate cost for an empty membership")

        member_count = len(requests)
        total_distance = path_distance([stop.location for stop in route])

        estimated_time = (
            total_distance * self.cost_model.minutes_per_km
            + (2 * member_count) * self.cost_model.minutes_per_stop
        )

        trip_cost = self.trip_cost(total_distance)
        cost_per_customer = trip_cost / member_count

        # Single-member pools save nothing by definition
        if member_count == 1:
            savings = 0.0
        else:
            solo_total = sum(self.solo_cost(r) for r in requests)
            savings = solo_total - cost_per_customer * member_count

        return CostBreakdown(
            total_distance_km=total_distance,
            estimated_time_minutes=estimated_time,
            trip_cost=trip_cost,
            cost_per_customer=cost_per_customer,
            savings=savings,
        )

    def trip_cost(self, distance_km: float) -> float:
        return self.cost_model.base_fare + distance_km * self.cost_model.per_km_rate

    def solo_cost(self, request: PoolRequest) -> float:
        """Cost of delivering the request alone."""
        return self.trip_cost(haversine_km(request.pickup, request.dropoff))
