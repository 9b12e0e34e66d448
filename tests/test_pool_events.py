"""Tests for pool event delivery."""

from backend.core.pooling import PoolEvent, PoolEventBus, PoolEventType


def make_event(pool_id: str, event_type: PoolEventType = PoolEventType.POOL_UPDATED) -> PoolEvent:
    return PoolEvent(event_type=event_type, pool_id=pool_id)


class TestSubscription:

    def test_drain_returns_publish_order(self):
        bus = PoolEventBus()
        subscription = bus.subscribe("orders")

        for i in range(5):
            bus.publish(make_event(f"pool_{i}"))

        assert [e.pool_id for e in subscription.drain()] == [f"pool_{i}" for i in range(5)]
        assert subscription.drain() == []

    def test_full_queue_drops_oldest(self):
        bus = PoolEventBus()
        subscription = bus.subscribe("slow", maxsize=3)

        for i in range(5):
            bus.publish(make_event(f"pool_{i}"))

        assert subscription.dropped == 2
        assert [e.pool_id for e in subscription.drain()] == ["pool_2", "pool_3", "pool_4"]

    def test_get_without_events(self):
        subscription = PoolEventBus().subscribe("idle")
        assert subscription.get() is None
        assert subscription.get(timeout=0.01) is None


class TestBus:

    def test_fan_out_to_every_subscriber(self):
        bus = PoolEventBus()
        a = bus.subscribe("a")
        b = bus.subscribe("b")

        bus.publish(make_event("pool_1", PoolEventType.POOL_CREATED))

        assert a.pending() == 1
        assert b.pending() == 1
        assert bus.published_total == 1

    def test_subscribe_is_idempotent(self):
        bus = PoolEventBus()
        assert bus.subscribe("api") is bus.subscribe("api")

    def test_unsubscribed_receives_nothing(self):
        bus = PoolEventBus()
        subscription = bus.subscribe("gone")
        bus.unsubscribe("gone")

        bus.publish(make_event("pool_1"))

        assert subscription.pending() == 0
        assert bus.get_status()["subscribers"] == {}

    def test_status(self):
        bus = PoolEventBus()
        bus.subscribe("tiny", maxsize=1)
        bus.publish(make_event("pool_1"))
        bus.publish(make_event("pool_2"))

        status = bus.get_status()
        assert status["published_total"] == 2
        assert status["subscribers"]["tiny"] == {"pending": 1, "dropped": 1}
