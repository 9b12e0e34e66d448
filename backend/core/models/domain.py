"""Domain models for the delivery pooling engine."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Set
from enum import Enum


class RequestStatus(str, Enum):
    """Request lifecycle statuses inside the pooling engine."""

    UNASSIGNED = "unassigned"
    POOLED = "pooled"
    REMOVED = "removed"


# Allowed next statuses; REMOVED is terminal
REQUEST_TRANSITIONS: Dict[RequestStatus, Set[RequestStatus]] = {
    RequestStatus.UNASSIGNED: {RequestStatus.POOLED, RequestStatus.REMOVED},
    RequestStatus.POOLED: {RequestStatus.REMOVED},
    RequestStatus.REMOVED: set(),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(timestamp: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


class StopType(str, Enum):
    """Type of stop in a pool route."""

    PICKUP = "pickup"
    DROPOFF = "dropoff"


@dataclass(frozen=True)
class Location:
    """Geocoded point with its address label."""

    latitude: float
    longitude: float
    address: str = ""


@dataclass(frozen=True)
class PoolRequest:
    """A single point-to-point delivery ask."""

    request_id: str
    customer_id: str

    # Locations (already geocoded)
    pickup: Location
    dropoff: Location

    # Constraints
    package_weight_kg: float = 1.0
    max_wait_minutes: float = 30.0

    # FIFO pickup ordering, always aware UTC
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        object.__setattr__(self, "created_at", as_utc(self.created_at))


@dataclass(frozen=True)
class RouteStop:
    """A stop on a pool route, linked to its owning request."""

    request_id: str
    stop_type: StopType
    location: Location


@dataclass
class Pool:
    """A group of 1-3 requests sharing one vehicle trip.

    Derived fields (route, distance, time, cost, savings) are owned by the
    engine's recompute step and always match ``requests``.
    """

    pool_id: str
    requests: List[PoolRequest] = field(default_factory=list)

    # Derived
    route: List[RouteStop] = field(default_factory=list)
    total_distance_km: float = 0.0
    estimated_time_minutes: float = 0.0
    cost_per_customer: float = 0.0
    savings: float = 0.0

    # Metadata
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def member_count(self) -> int:
        return len(self.requests)

    @property
    def request_ids(self) -> List[str]:
        return [r.request_id for r in self.requests]

    def has_request(self, request_id: str) -> bool:
        return any(r.request_id == request_id for r in self.requests)

    def snapshot(self) -> "Pool":
        """Detached copy safe to hand out of the registry."""
        return replace(self, requests=list(self.requests), route=list(self.route))
