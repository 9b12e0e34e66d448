"""Delivery Pooling Engine Package."""

from .geometry import haversine_km, bearing_degrees, angular_difference
from .compatibility import CompatibilityScorer, CompatibilityConfig, MemberCompatibility
from .sequence_optimizer import RouteOptimizer
from .cost_allocator import CostAllocator, CostModel, CostBreakdown
from .events import PoolEvent, PoolEventBus, PoolEventSubscription, PoolEventType
from .exceptions import (
    PoolingError,
    PoolNotFoundError,
    PoolCapacityError,
    DuplicateRequestError,
    InvalidTransitionError,
    ConfigurationError,
)
from .pool_registry import PoolRegistry
from .pooling_engine import PoolingEngine, PoolConfiguration, CandidateEvaluation

__all__ = [
    # Geometry
    "haversine_km",
    "bearing_degrees",
    "angular_difference",
    # Compatibility
    "CompatibilityScorer",
    "CompatibilityConfig",
    "MemberCompatibility",
    # Routing and cost
    "RouteOptimizer",
    "CostAllocator",
    "CostModel",
    "CostBreakdown",
    # Events
    "PoolEvent",
    "PoolEventBus",
    "PoolEventSubscription",
    "PoolEventType",
    # Errors
    "PoolingError",
    "PoolNotFoundError",
    "PoolCapacityError",
    "DuplicateRequestError",
    "InvalidTransitionError",
    "ConfigurationError",
    # Registry and engine
    "PoolRegistry",
    "PoolingEngine",
    "PoolConfiguration",
    "CandidateEvaluation",
]
