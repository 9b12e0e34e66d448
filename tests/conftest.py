"""Shared fixtures for pooling engine tests."""

import pytest
from datetime import datetime, timedelta

from backend.core.models.domain import Location, PoolRequest
from backend.core.pooling import PoolingEngine


BASE_TIME = datetime(2026, 10, 19, 12, 0, 0)

# Mumbai test geometry
MUMBAI_PICKUP = Location(latitude=19.0760, longitude=72.8777, address="Bandra Kurla Complex")
MUMBAI_DROPOFF = Location(latitude=19.0896, longitude=72.8656, address="Santacruz East")


def make_request(
    request_id: str,
    pickup: Location,
    dropoff: Location,
    minutes_after_base: int = 0,
    customer_id: str = None,
    max_wait_minutes: float = 30.0,
) -> PoolRequest:
    """Create test pool request."""
    return PoolRequest(
        request_id=request_id,
        customer_id=customer_id or f"CUST_{request_id}",
        pickup=pickup,
        dropoff=dropoff,
        package_weight_kg=2.0,
        max_wait_minutes=max_wait_minutes,
        created_at=BASE_TIME + timedelta(minutes=minutes_after_base),
    )


def shifted(location: Location, dlat: float = 0.0, dlon: float = 0.0, address: str = "") -> Location:
    """Location offset by degrees."""
    return Location(
        latitude=location.latitude + dlat,
        longitude=location.longitude + dlon,
        address=address or location.address,
    )


@pytest.fixture
def engine():
    """Fresh engine with default configuration."""
    return PoolingEngine()


@pytest.fixture
def request_1():
    return make_request("REQ_001", MUMBAI_PICKUP, MUMBAI_DROPOFF, minutes_after_base=0)


@pytest.fixture
def nearby_requests():
    """Requests within ~0.3 km of REQ_001's stops, same direction of travel."""
    return [
        make_request(
            f"REQ_00{i + 2}",
            shifted(MUMBAI_PICKUP, dlat=0.001 * (i + 1), dlon=0.001 * (i + 1)),
            shifted(MUMBAI_DROPOFF, dlat=0.001 * (i + 1), dlon=0.001 * (i + 1)),
            minutes_after_base=i + 1,
        )
        for i in range(3)
    ]
