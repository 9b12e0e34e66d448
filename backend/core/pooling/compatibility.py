"""Route compatibility scoring between a candidate request and a pool.

For every current member the candidate is compared on:
1. Pickup proximity
2. Dropoff proximity
3. Direction similarity (pickup -> dropoff bearing)

The pool score is the mean of per-member composites. It is directional:
it measures how well the candidate fits the existing members, so
score(pool, x) and score(pool_of_x, y) are not interchangeable.
"""

from dataclasses import dataclass
from typing import List, Optional
import logging

from ..models.domain import Pool, PoolRequest
from .geometry import haversine_km, bearing_degrees, angular_difference

logger = logging.getLogger(__name__)


@dataclass
class CompatibilityConfig:
    """Configuration for compatibility scoring."""

    # Proximity falls linearly to zero at this distance
    proximity_radius_km: float = 5.0

    # Direction similarity falls linearly to zero at this divergence
    max_bearing_divergence_degrees: float = 90.0

    # Composite weights (sum to 1.0)
    pickup_weight: float = 0.30
    dropoff_weight: float = 0.30
    direction_weight: float = 0.40


@dataclass
class MemberCompatibility:
    """Sub-scores of a candidate against one pool member."""

    member_request_id: str
    pickup_score: float
    dropoff_score: float
    direction_score: float
    composite: float


class CompatibilityScorer:
    """Scores how well a candidate request's route overlaps a pool."""

    def __init__(self, config: Optional[CompatibilityConfig] = None):
        self.config = config or CompatibilityConfig()

    def score(self, pool: Pool, candidate: PoolRequest) -> float:
        """Mean composite score of candidate against all pool members.

        Returns:
            Score 0.0 - 1.0 (higher = more compatible)
        """
        return self.score_members(pool.requests, candidate)

    def score_members(self, members: List[PoolRequest], candidate: PoolRequest) -> float:
        if not members:
            raise ValueError("Cannot score a candidate against an empty pool")

        breakdown = self.breakdown(members, candidate)
        return sum(m.composite for m in breakdown) / len(breakdown)

    def breakdown(
        self,
        members: List[PoolRequest],
        candidate: PoolRequest
    ) -> List[MemberCompatibility]:
        """Per-member sub-scores, in membership order."""
        return [self.score_pair(member, candidate) for member in members]

    def score_pair(self, member: PoolRequest, candidate: PoolRequest) -> MemberCompatibility:
        pickup_score = self.proximity_score(
            haversine_km(member.pickup, candidate.pickup)
        )
        dropoff_score = self.proximity_score(
            haversine_km(member.dropoff, candidate.dropoff)
        )
        direction_score = self.direction_similarity(member, candidate)

        composite = (
            pickup_score * self.config.pickup_weight
            + dropoff_score * self.config.dropoff_weight
            + direction_score * self.config.direction_weight
        )

        logger.debug(
            f"Compatibility {candidate.request_id} vs {member.request_id}: "
            f"pickup={pickup_score:.2f}, dropoff={dropoff_score:.2f}, "
            f"direction={direction_score:.2f} -> {composite:.2f}"
        )

        return MemberCompatibility(
            member_request_id=member.request_id,
            pickup_score=pickup_score,
            dropoff_score=dropoff_score,
            direction_score=direction_score,
            composite=composite,
        )

    def proximity_score(self, distance_km: float) -> float:
        """Convert distance to score (0 km = 1.0, radius or beyond = 0.0)."""
        return max(0.0, 1.0 - distance_km / self.config.proximity_radius_km)

    def direction_similarity(self, req1: PoolRequest, req2: PoolRequest) -> float:
        """Bearing similarity of the two pickup -> dropoff legs (0.0 - 1.0)."""
        bearing1 = bearing_degrees(req1.pickup, req1.dropoff)
        bearing2 = bearing_degrees(req2.pickup, req2.dropoff)

        diff = angular_difference(bearing1, bearing2)

        return max(0.0, 1.0 - diff / self.config.max_bearing_divergence_degrees)
