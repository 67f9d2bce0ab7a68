"""
Tests for the event bus.
"""
import logging

from henhouse.events import CoinsChanged, CornChanged, EventBus, GameEvent


class TestEventBus:
    """Tests for EventBus delivery."""

    def test_delivers_to_matching_type(self, bus):
        """Handlers only see the event class they subscribed to."""
        corn, coins = [], []
        bus.subscribe(CornChanged, corn.append)
        bus.subscribe(CoinsChanged, coins.append)

        bus.publish(CornChanged(3))

        assert corn == [CornChanged(3)]
        assert coins == []

    def test_base_class_receives_everything(self, bus):
        """Subscribing to GameEvent sees every event."""
        seen = []
        bus.subscribe(GameEvent, seen.append)

        bus.publish(CornChanged(1))
        bus.publish(CoinsChanged(2))

        assert len(seen) == 2

    def test_registration_order(self, bus):
        """Subscribers of one type run in the order they registered."""
        order = []
        bus.subscribe(CornChanged, lambda e: order.append("first"))
        bus.subscribe(CornChanged, lambda e: order.append("second"))

        bus.publish(CornChanged(1))

        assert order == ["first", "second"]

    def test_registration_order_across_types(self, bus):
        """Handlers for a base class and a subclass interleave in subscription order."""
        order = []
        bus.subscribe(GameEvent, lambda e: order.append("a"))
        bus.subscribe(CornChanged, lambda e: order.append("b"))
        bus.subscribe(GameEvent, lambda e: order.append("c"))

        bus.publish(CornChanged(1))

        assert order == ["a", "b", "c"]

    def test_unsubscribe(self, bus):
        """Removed handlers stop receiving events."""
        seen = []
        bus.subscribe(CornChanged, seen.append)

        assert bus.unsubscribe(CornChanged, seen.append)
        assert not bus.unsubscribe(CornChanged, seen.append)

        bus.publish(CornChanged(1))
        assert seen == []

    def test_failing_handler_is_logged_and_skipped(self, bus, caplog):
        """One broken subscriber does not starve the others."""
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(CornChanged, broken)
        bus.subscribe(CornChanged, seen.append)

        with caplog.at_level(logging.ERROR, logger="henhouse.events"):
            bus.publish(CornChanged(1))

        assert seen == [CornChanged(1)]
        assert "CornChanged" in caplog.text

    def test_stats_count_publishes(self):
        """stats() counts events by class name."""
        bus = EventBus()
        bus.publish(CornChanged(1))
        bus.publish(CornChanged(2))
        bus.publish(CoinsChanged(1))

        assert bus.stats() == {"CornChanged": 2, "CoinsChanged": 1}
