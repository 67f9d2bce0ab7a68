"""
Production nodes: Field, Producer, Market.
NO UI DEPENDENCIES.

Every node runs the same cooldown-gated state machine:

    READY --interact()--> BUSY --busy elapses--> COOLDOWN --cooldown elapses--> READY

Timers tick down by dt * speed_rate, so every duration is effectively
divided by the ledger's speed rate.
"""
import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Dict, Iterator, List, Optional

from .constants import CORN_COLOR, EGG_COLOR, COIN_COLOR
from .events import EventBus, GameEvent, NodeStateChanged, ResourceGained
from .ledger import ResourceLedger
from .movement import Position

logger = logging.getLogger(__name__)


class NodeKind(Enum):
    FIELD = auto()      # harvest corn
    PRODUCER = auto()   # feed corn, lay eggs
    MARKET = auto()     # sell eggs


class NodeState(Enum):
    READY = auto()
    BUSY = auto()
    COOLDOWN = auto()


class ProductionNode(ABC):
    """
    Base class for all interactable nodes.

    Subclasses supply the resource precondition, the immediate effect of
    an accepted interaction and (optionally) what happens when BUSY ends.
    """

    kind: NodeKind

    def __init__(
        self,
        name: str,
        position: Position,
        ledger: ResourceLedger,
        output: int,
        busy_duration: float = 0.0,
        cooldown_duration: float = 0.0,
        bus: Optional[EventBus] = None,
    ):
        if busy_duration < 0 or cooldown_duration < 0:
            raise ValueError("durations must be non-negative")
        self.name = name
        self.position = position
        self.ledger = ledger
        self.bus = bus
        self.busy_duration = busy_duration
        self.cooldown_duration = cooldown_duration

        self.base_output = output
        self.output = output

        self.state = NodeState.READY
        self.busy_remaining: float = 0.0
        self.cooldown_remaining: float = 0.0

        self.accepted_count: int = 0
        self.rejected_count: int = 0

        self._lock = threading.RLock()

    # =========================================================================
    # INTERACTION
    # =========================================================================

    def can_interact(self) -> bool:
        """True iff READY and the resource precondition holds."""
        return self.state == NodeState.READY and self._precondition()

    def interact(self) -> bool:
        """
        Try to use this node.
        Returns True if accepted, False if ignored (not ready or short on
        resources). An ignored call changes nothing.

        The slot is claimed (state BUSY) before the ledger effect runs, so a
        subscriber reacting to that effect sees the node as taken.
        """
        with self._lock:
            if not self.can_interact():
                return self._reject()

            self.state = NodeState.BUSY
            self.busy_remaining = self.busy_duration
            self.accepted_count += 1
            if not self._apply_effect():
                self.state = NodeState.READY
                self.busy_remaining = 0.0
                self.accepted_count -= 1
                return self._reject()

            self._publish(NodeStateChanged(self.name, NodeState.READY, NodeState.BUSY))
            if self.busy_remaining <= 0:
                self._finish_busy()
            return True

    def _reject(self) -> bool:
        self.rejected_count += 1
        logger.debug(f"{self.name}: interaction ignored in {self.state.name}")
        return False

    @abstractmethod
    def _precondition(self) -> bool:
        """Kind-specific resource check."""
        pass

    @abstractmethod
    def _apply_effect(self) -> bool:
        """
        Apply the immediate ledger effect of an accepted interaction.
        Returns False if the ledger refused it.
        """
        pass

    def _on_busy_complete(self) -> None:
        """Hook for effects that land when BUSY ends."""
        pass

    # =========================================================================
    # TIMERS
    # =========================================================================

    def update(self, dt: float) -> None:
        """Advance BUSY/COOLDOWN timers by dt scaled by the speed rate."""
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")
        scaled = dt * self.ledger.speed_rate

        with self._lock:
            if self.state == NodeState.BUSY:
                self.busy_remaining -= scaled
                if self.busy_remaining <= 0:
                    self._finish_busy()

            elif self.state == NodeState.COOLDOWN:
                self.cooldown_remaining -= scaled
                if self.cooldown_remaining <= 0:
                    self.cooldown_remaining = 0.0
                    self._set_state(NodeState.READY)

    def _finish_busy(self) -> None:
        self.busy_remaining = 0.0
        self._on_busy_complete()
        if self.cooldown_duration > 0:
            self.cooldown_remaining = self.cooldown_duration
            self._set_state(NodeState.COOLDOWN)
        else:
            self.cooldown_remaining = 0.0
            self._set_state(NodeState.READY)

    def _set_state(self, new_state: NodeState) -> None:
        old_state = self.state
        if old_state == new_state:
            return
        self.state = new_state
        self._publish(NodeStateChanged(self.name, old_state, new_state))

    # =========================================================================
    # UPGRADES / RESET
    # =========================================================================

    def add_output_bonus(self, amount: int) -> None:
        """Permanently raise the per-cycle output amount."""
        if amount < 0:
            raise ValueError(f"bonus must be non-negative, got {amount}")
        self.output += amount

    def set_output_bonus(self, total: int) -> None:
        """Set output to the configured amount plus a total bonus."""
        if total < 0:
            raise ValueError(f"bonus must be non-negative, got {total}")
        self.output = self.base_output + total

    def reset(self) -> None:
        """Back to READY with the configured output and zeroed counters."""
        with self._lock:
            self.output = self.base_output
            self.busy_remaining = 0.0
            self.cooldown_remaining = 0.0
            self.accepted_count = 0
            self.rejected_count = 0
            self._set_state(NodeState.READY)

    def _publish(self, event: GameEvent) -> None:
        if self.bus is not None:
            self.bus.publish(event)

    def _gained(self, label: str, color: tuple) -> None:
        self._publish(ResourceGained(label, self.position.as_tuple(), color))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.state.name})"


class Field(ProductionNode):
    """A corn field. Harvesting adds corn, then the field regrows."""

    kind = NodeKind.FIELD

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.corn_harvested: int = 0

    def _precondition(self) -> bool:
        return True

    def _apply_effect(self) -> bool:
        gained = self.ledger.add_corn(self.output)
        self.corn_harvested += gained
        self._gained(f"+{gained} corn", CORN_COLOR)
        return True

    def reset(self) -> None:
        super().reset()
        self.corn_harvested = 0


class Producer(ProductionNode):
    """
    A chicken. Feeding consumes corn now; the egg appears when BUSY ends.

    With auto_collect the egg goes straight into the ledger. Otherwise it
    waits in `uncollected` until someone calls collect().
    """

    kind = NodeKind.PRODUCER

    def __init__(self, *args, feed_cost: int = 1, auto_collect: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        if feed_cost < 0:
            raise ValueError(f"feed_cost must be non-negative, got {feed_cost}")
        self.feed_cost = feed_cost
        self.auto_collect = auto_collect
        self.uncollected: int = 0
        self.eggs_laid: int = 0
        self.eggs_collected: int = 0

    @property
    def is_laying(self) -> bool:
        """True while a fed egg has not been laid yet."""
        return self.state == NodeState.BUSY

    def _precondition(self) -> bool:
        return self.ledger.corn >= self.feed_cost

    def _apply_effect(self) -> bool:
        return self.ledger.use_corn(self.feed_cost)

    def _on_busy_complete(self) -> None:
        self.eggs_laid += self.output
        if self.auto_collect:
            gained = self.ledger.add_egg(self.output)
            self.eggs_collected += gained
            self._gained(f"+{gained} egg", EGG_COLOR)
        else:
            self.uncollected += self.output

    def collect(self) -> int:
        """Credit any uncollected eggs to the ledger. Returns eggs credited."""
        with self._lock:
            count = self.uncollected
            self.uncollected = 0
        if count == 0:
            return 0
        gained = self.ledger.add_egg(count)
        self.eggs_collected += gained
        self._gained(f"+{gained} egg", EGG_COLOR)
        return gained

    def reset(self) -> None:
        super().reset()
        self.uncollected = 0
        self.eggs_laid = 0
        self.eggs_collected = 0


class Market(ProductionNode):
    """The store counter. Each accepted sale trades up to `output` eggs."""

    kind = NodeKind.MARKET

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.eggs_sold: int = 0
        self.coins_earned: int = 0

    @property
    def batch_size(self) -> int:
        return self.output

    def _precondition(self) -> bool:
        return self.ledger.eggs >= 1

    def _apply_effect(self) -> bool:
        sold = 0
        earned = 0
        for _ in range(max(1, self.output)):
            price = self.ledger.sell_price
            if not self.ledger.sell_one_egg():
                break
            sold += 1
            earned += price
        if sold > 0:
            self.eggs_sold += sold
            self.coins_earned += earned
            self._gained(f"+{earned} coins", COIN_COLOR)
        return sold > 0

    def reset(self) -> None:
        super().reset()
        self.eggs_sold = 0
        self.coins_earned = 0


class NodeRegistry:
    """
    Every node in the session, built once at setup.
    Looked up by name, by kind or by proximity to a point.
    """

    def __init__(self, nodes: Optional[List[ProductionNode]] = None):
        self._nodes: Dict[str, ProductionNode] = {}
        for node in nodes or []:
            self.add(node)

    def add(self, node: ProductionNode) -> None:
        if node.name in self._nodes:
            raise ValueError(f"duplicate node name {node.name!r}")
        self._nodes[node.name] = node

    def get(self, name: str) -> Optional[ProductionNode]:
        return self._nodes.get(name)

    def first_of(self, kind: NodeKind) -> Optional[ProductionNode]:
        """First registered node of a kind, or None."""
        for node in self._nodes.values():
            if node.kind == kind:
                return node
        return None

    def of_kind(self, kind: NodeKind) -> List[ProductionNode]:
        return [n for n in self._nodes.values() if n.kind == kind]

    def nearest(self, point: Position, radius: float) -> Optional[ProductionNode]:
        """Closest node within radius of point, or None."""
        best = None
        best_dist = radius
        for node in self._nodes.values():
            dist = node.position.distance_to(point)
            if dist <= best_dist:
                best, best_dist = node, dist
        return best

    def __iter__(self) -> Iterator[ProductionNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)
