"""Demo script showing the delivery pooling workflow.

This demonstrates:
1. Pooling nearby same-direction requests
2. Rejecting incompatible requests into their own pools
3. Cancellations, recompute and pool events
4. Customer fare quotes and vehicle recommendations
"""

from datetime import datetime, timedelta

from backend.core.models.domain import Location, PoolRequest, utc_now
from backend.core.pooling import PoolEventBus
from backend.core.pricing.fare_quote import DeliveryType, VehicleType, time_context_for
from backend.services.delivery_lifecycle import (
    DeliveryLifecycleService,
    RequestCancelled,
    RequestCreated,
)
from backend.utils.config import build_fare_service, build_pooling_engine


def create_sample_requests():
    """Create sample requests around Bandra Kurla Complex, Mumbai."""
    now = utc_now()

    def request(request_id, offset, minutes, dropoff=None):
        return PoolRequest(
            request_id=request_id,
            customer_id=f"CUST_{request_id}",
            pickup=Location(19.0760 + offset, 72.8777 + offset, "BKC"),
            dropoff=dropoff or Location(19.0896 + offset, 72.8656 + offset, "Santacruz East"),
            package_weight_kg=2.0,
            created_at=now + timedelta(minutes=minutes),
        )

    return [
        request("REQ_001", 0.000, 0),
        request("REQ_002", 0.001, 1),
        request("REQ_003", 0.002, 2),
        request("REQ_004", 0.003, 3),
        request("REQ_005", 0.000, 4, dropoff=Location(22.5726, 88.3639, "Kolkata")),
    ]


def print_pool(pool):
    print(f"  {pool.pool_id}: {pool.member_count} members {pool.request_ids}")
    print(f"    Distance: {pool.total_distance_km:.2f} km, Time: {pool.estimated_time_minutes:.0f} min")
    print(f"    Cost/customer: {pool.cost_per_customer:.2f}, Savings: {pool.savings:.2f}")
    print(f"    Route: {' -> '.join(f'{s.stop_type.value}:{s.request_id}' for s in pool.route)}")


def demo_pool_assignment():
    """Demonstrate first-fit pool assignment."""

    print("\n" + "=" * 70)
    print("DEMO 1: Pool Assignment")
    print("=" * 70)

    engine = build_pooling_engine()

    for request in create_sample_requests():
        pool_id = engine.add_request(request)
        print(f"  {request.request_id} -> {pool_id}")

    print(f"\nActive Pools:")
    for pool in engine.list_active_pools():
        print_pool(pool)


def demo_lifecycle_and_events():
    """Demonstrate queued lifecycle events and pool notifications."""

    print("\n" + "=" * 70)
    print("DEMO 2: Lifecycle Events")
    print("=" * 70)

    event_bus = PoolEventBus()
    subscription = event_bus.subscribe("demo")
    engine = build_pooling_engine(event_bus=event_bus)
    lifecycle = DeliveryLifecycleService(engine)

    requests = create_sample_requests()[:3]
    for request in requests:
        lifecycle.submit_event(RequestCreated(request))
    lifecycle.submit_event(RequestCancelled("REQ_002"))
    lifecycle.submit_event(RequestCancelled("REQ_404"))

    print(f"\nProcessing event queue...")
    for result in lifecycle.process_all_events():
        status = "ok" if result.success else f"failed ({result.error})"
        print(f"  {result.event.event_type.value}: pool={result.pool_id} {status}")

    print(f"\nPool Events:")
    for event in subscription.drain():
        members = event.pool.member_count if event.pool else 0
        print(f"  {event.event_type.value}: {event.pool_id} ({members} members)")

    print(f"\nAfter Cancellation:")
    for pool in engine.list_active_pools():
        print_pool(pool)

    status = lifecycle.get_queue_status()
    print(f"\nQueue Status:")
    print(f"  Processed Total: {status['processed_total']}")
    print(f"  Failed Total: {status['failed_total']}")


def demo_fare_quotes():
    """Demonstrate customer fare quotes."""

    print("\n" + "=" * 70)
    print("DEMO 3: Fare Quotes")
    print("=" * 70)

    fares = build_fare_service()
    ctx = time_context_for(datetime.now())
    print(f"\nConditions: {ctx.time_of_day.value}, holiday={ctx.is_holiday}")

    for delivery_type in DeliveryType:
        quote = fares.quote(10, 3, VehicleType.BIKE, delivery_type, time_context=ctx)
        print(f"  Bike 10 km {delivery_type.value}: ₹{quote.total_fare} ({quote.estimated_time_minutes} min)")

    print(f"\nVehicle Recommendations (60 kg, 10 km):")
    for rec in fares.recommend_vehicles(60, 10, time_context=ctx):
        fare = f"₹{rec.estimated_fare}" if rec.suitable else "-"
        print(f"  {rec.vehicle_type.value}: {fare} - {rec.reason}")


if __name__ == "__main__":
    print("\n" + "=" * 70)
    print("DELIVERY POOLING ENGINE - DEMO SUITE")
    print("=" * 70)

    demo_pool_assignment()
    demo_lifecycle_and_events()
    demo_fare_quotes()

    print("\n" + "=" * 70)
    print("DEMO COMPLETE")
    print("=" * 70)
