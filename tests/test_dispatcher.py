"""
Tests for the player's interaction dispatcher.
"""
import pytest

from henhouse.dispatcher import InteractionDispatcher
from henhouse.events import InteractionCancelled
from henhouse.ledger import RateKind
from henhouse.movement import Position
from henhouse.nodes import Field, Market, NodeRegistry, NodeState, Producer

DT = 0.05


def make_dispatcher(ledger, bus=None, auto_collect=True):
    nodes = NodeRegistry([
        Field("field", Position(-4, 0), ledger, output=1, cooldown_duration=2.0, bus=bus),
        Producer("chicken", Position(0, 0), ledger, output=1, busy_duration=0.5,
                 cooldown_duration=1.0, bus=bus, feed_cost=1, auto_collect=auto_collect),
        Market("store", Position(4, 0), ledger, output=1, cooldown_duration=0.5, bus=bus),
    ])
    dispatcher = InteractionDispatcher(
        nodes, ledger, start_position=Position(-4, -2), speed=5.0, pick_radius=1.0, bus=bus,
    )
    return dispatcher, nodes


def walk(dispatcher, nodes, seconds):
    elapsed = 0.0
    while elapsed < seconds:
        dispatcher.update(DT)
        for node in nodes:
            node.update(DT)
        elapsed += DT


class TestInteractionDispatcher:
    """Tests for click-to-walk-and-use."""

    def test_walks_then_interacts_once(self, ledger):
        """The node is used on arrival and only once."""
        dispatcher, nodes = make_dispatcher(ledger)

        assert dispatcher.handle_input(Position(-4.2, 0.1)).name == "field"
        assert ledger.corn == 0

        walk(dispatcher, nodes, 3.0)

        assert ledger.corn == 1
        assert dispatcher.pending is None
        assert dispatcher.position == Position(-4, 0)
        assert dispatcher.last_result is True

    def test_new_target_cancels_pending(self, ledger, bus, recorded):
        """Picking another node drops the first with no effect."""
        ledger.add_egg(1)
        dispatcher, nodes = make_dispatcher(ledger, bus)

        dispatcher.handle_input(Position(-4, 0))
        dispatcher.update(DT)
        dispatcher.handle_input(Position(4, 0))

        cancelled = [e for e in recorded if isinstance(e, InteractionCancelled)]
        assert cancelled == [InteractionCancelled("field")]
        assert dispatcher.pending.name == "store"

        walk(dispatcher, nodes, 5.0)

        assert ledger.corn == 0
        assert ledger.eggs == 0
        assert ledger.coins == 60

    def test_same_target_kept(self, ledger, bus, recorded):
        """Clicking the pending node again does not cancel it."""
        dispatcher, nodes = make_dispatcher(ledger, bus)

        dispatcher.handle_input(Position(-4, 0))
        dispatcher.handle_input(Position(-4, 0.3))

        assert not any(isinstance(e, InteractionCancelled) for e in recorded)
        walk(dispatcher, nodes, 3.0)
        assert ledger.corn == 1

    def test_empty_ground_walks_and_cancels(self, ledger):
        """Clicking open ground drops the pending target and just walks."""
        dispatcher, nodes = make_dispatcher(ledger)

        dispatcher.handle_input(Position(-4, 0))
        assert dispatcher.handle_input(Position(-2, -2)) is None
        assert dispatcher.pending is None

        walk(dispatcher, nodes, 2.0)

        assert dispatcher.position == Position(-2, -2)
        assert ledger.corn == 0
        assert dispatcher.cancelled_count == 1

    def test_rejected_on_arrival(self, ledger):
        """Arriving at a node that refuses leaves nothing pending."""
        dispatcher, nodes = make_dispatcher(ledger)

        dispatcher.handle_input(Position(0, 0))
        walk(dispatcher, nodes, 3.0)

        assert dispatcher.last_result is False
        assert dispatcher.pending is None
        assert nodes.get("chicken").state == NodeState.READY

    def test_collects_instead_of_feeding(self, ledger):
        """A chicken with eggs waiting is collected from, not fed."""
        ledger.add_corn(5)
        dispatcher, nodes = make_dispatcher(ledger, auto_collect=False)
        chicken = nodes.get("chicken")
        chicken.uncollected = 2

        dispatcher.handle_input(Position(0, 0))
        walk(dispatcher, nodes, 3.0)

        assert ledger.eggs == 2
        assert ledger.corn == 5
        assert chicken.uncollected == 0

    def test_speed_rate_scales_walk(self, ledger):
        """The avatar walks at player_speed * speed_rate."""
        ledger.apply_rate_multiplier(RateKind.SPEED, 2.0)
        dispatcher, _ = make_dispatcher(ledger)

        dispatcher.handle_input(Position(-4, 3))
        dispatcher.update(0.1)

        assert dispatcher.position.y == pytest.approx(-1.0)

    def test_cancel(self, ledger):
        """cancel() stops walking and clears the target."""
        dispatcher, _ = make_dispatcher(ledger)
        dispatcher.handle_input(Position(4, 0))

        dispatcher.cancel()

        assert dispatcher.pending is None
        assert not dispatcher.is_moving
