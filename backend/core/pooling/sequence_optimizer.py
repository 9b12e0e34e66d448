"""Pickup and dropoff sequencing for pool routes.

Strategy:
1. All pickups first, earliest-created request first (fairness, not distance)
2. Dropoffs by nearest neighbour, starting from the last pickup

This is a greedy approximation, not a TSP solver. Nearest-neighbour ties go
to the dropoff that appears first in the input order, which keeps routes
deterministic.
"""

from typing import List, Sequence
import logging

from ..models.domain import Location, PoolRequest, RouteStop, StopType
from .geometry import haversine_km

logger = logging.getLogger(__name__)


class RouteOptimizer:
    """Builds the visiting order of stops for a pool's requests."""

    def optimize(self, requests: Sequence[PoolRequest]) -> List[RouteStop]:
        """Optimize stop sequence for the given requests.

        Args:
            requests: Pool members, in membership order

        Returns:
            Ordered list of RouteStop
        """
        if not requests:
            raise ValueError("Cannot optimize a route with no requests")

        if len(requests) == 1:
            request = requests[0]
            return [self._pickup(request), self._dropoff(request)]

        # Phase 1: Pickups (stable sort keeps input order on equal timestamps)
        stops = [
            self._pickup(request)
            for request in sorted(requests, key=lambda r: r.created_at)
        ]

        # Phase 2: Dropoffs, nearest first from the last pickup
        current_location = stops[-1].location
        remaining = [self._dropoff(request) for request in requests]

        while remaining:
            nearest_index = 0
            nearest_distance = haversine_km(current_location, remaining[0].location)

            for i in range(1, len(remaining)):
                distance = haversine_km(current_location, remaining[i].location)
                if distance < nearest_distance:
                    nearest_distance = distance
                    nearest_index = i

            nearest = remaining.pop(nearest_index)
            stops.append(nearest)
            current_location = nearest.location

        logger.debug(
            f"Optimized route for {len(requests)} requests: "
            + " -> ".join(f"{s.stop_type.value}:{s.request_id}" for s in stops)
        )

        return stops

    def route_distance(self, stops: Sequence[RouteStop]) -> float:
        """Sum of consecutive-stop distances along the route."""
        return path_distance([stop.location for stop in stops])

    def _pickup(self, request: PoolRequest) -> RouteStop:
        return RouteStop(
            request_id=request.request_id,
            stop_type=StopType.PICKUP,
            location=request.pickup,
        )

    def _dropoff(self, request: PoolRequest) -> RouteStop:
        return RouteStop(
            request_id=request.request_id,
            stop_type=StopType.DROPOFF,
            location=request.dropoff,
        )


def path_distance(locations: Sequence[Location]) -> float:
    total = 0.0
    for i in range(len(locations) - 1):
        total += haversine_km(locations[i], locations[i + 1])
    return total
