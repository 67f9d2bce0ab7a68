"""
Interaction dispatcher - the player's avatar and its single pending target.
NO UI DEPENDENCIES.
"""
import logging
from typing import Optional

from .events import EventBus, InteractionCancelled
from .ledger import ResourceLedger
from .movement import Mover, Position
from .nodes import NodeRegistry, ProductionNode, Producer

logger = logging.getLogger(__name__)


class InteractionDispatcher:
    """
    Walks the player to whatever they clicked and uses it on arrival.

    At most one target is pending. A new input always wins: the old
    target is dropped with no partial effect and the walk is redirected.

    Usage:
        dispatcher.handle_input(Position(4, 0))   # click the store
        dispatcher.update(dt)                     # every tick
    """

    def __init__(
        self,
        nodes: NodeRegistry,
        ledger: ResourceLedger,
        start_position: Position,
        speed: float,
        pick_radius: float,
        bus: Optional[EventBus] = None,
    ):
        self.nodes = nodes
        self.ledger = ledger
        self.mover = Mover(start_position, speed)
        self.pick_radius = pick_radius
        self.bus = bus

        self.pending: Optional[ProductionNode] = None
        self.last_result: Optional[bool] = None
        self.cancelled_count: int = 0

    @property
    def position(self) -> Position:
        return self.mover.position

    @property
    def is_moving(self) -> bool:
        return self.mover.is_moving

    def handle_input(self, point: Position) -> Optional[ProductionNode]:
        """
        React to a click/tap at point.
        Returns the node that became the pending target, or None if the
        input was a plain move.
        """
        target = self.nodes.nearest(point, self.pick_radius)

        if self.pending is not None and self.pending is not target:
            self._cancel_pending()

        if target is None:
            self.mover.move_to(point)
            return None

        self.pending = target
        self.mover.move_to(target.position)
        return target

    def cancel(self) -> None:
        """Stop walking and drop any pending target."""
        self._cancel_pending()
        self.mover.stop()

    def _cancel_pending(self) -> None:
        if self.pending is None:
            return
        logger.debug(f"Player interaction with {self.pending.name} cancelled")
        self.cancelled_count += 1
        if self.bus is not None:
            self.bus.publish(InteractionCancelled(self.pending.name))
        self.pending = None

    def update(self, dt: float) -> None:
        """Walk; on arrival use the pending target exactly once."""
        if not self.mover.step(dt, self.ledger.speed_rate):
            return
        if self.pending is None:
            return

        target = self.pending
        self.pending = None
        self.last_result = self._use(target)

    def _use(self, target: ProductionNode) -> bool:
        # A chicken with eggs waiting gets collected from instead of fed
        if isinstance(target, Producer) and target.uncollected > 0:
            return target.collect() > 0
        return target.interact()

    def __repr__(self) -> str:
        pending = self.pending.name if self.pending else None
        return f"InteractionDispatcher(at={self.position.as_tuple()}, pending={pending})"
