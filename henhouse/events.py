"""
Game events and the observer bus that delivers them.
NO UI DEPENDENCIES.

Events are plain dataclasses with no behaviour. Subscribers register a
callable per event class and receive events synchronously, in
registration order, as soon as they are published:

    bus = EventBus()
    bus.subscribe(CoinsChanged, lambda e: print(e.value))
    bus.publish(CoinsChanged(60))
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple, Type

logger = logging.getLogger(__name__)


@dataclass
class GameEvent:
    """Base class for everything published on the bus."""
    pass


# =============================================================================
# LEDGER EVENTS
# =============================================================================

@dataclass
class CornChanged(GameEvent):
    value: int


@dataclass
class EggsChanged(GameEvent):
    value: int


@dataclass
class CoinsChanged(GameEvent):
    value: int


@dataclass
class AgentCountChanged(GameEvent):
    value: int


@dataclass
class ResourceGained(GameEvent):
    """Presentation hint: floating '+1 corn' style popup."""
    label: str
    location: Tuple[float, float]
    color: Tuple[int, int, int]


# =============================================================================
# SIMULATION EVENTS
# =============================================================================

@dataclass
class NodeStateChanged(GameEvent):
    node_name: str
    old_state: Any
    new_state: Any


@dataclass
class UpgradePurchased(GameEvent):
    kind: Any
    level: int
    cost: int


@dataclass
class AgentHired(GameEvent):
    agent_id: int
    cost: int


@dataclass
class AgentTaskChanged(GameEvent):
    agent_id: int
    old_task: Any
    new_task: Any


@dataclass
class InteractionCancelled(GameEvent):
    """The player's pending target was replaced before arrival."""
    node_name: str


@dataclass
class TutorialAdvanced(GameEvent):
    old_step: Any
    new_step: Any


@dataclass
class ProgressReset(GameEvent):
    pass


@dataclass
class DayStarted(GameEvent):
    day: int


Handler = Callable[[GameEvent], None]


class EventBus:
    """
    Synchronous observer list of (event class, handler) pairs.

    Subscribing to GameEvent receives every event. Matching handlers run
    in the order they subscribed, whatever class they subscribed to. A
    failing handler is logged and skipped so the remaining subscribers
    still get the event.
    """

    def __init__(self):
        self._subs: List[Tuple[Type[GameEvent], Handler]] = []
        self._counts: Dict[str, int] = defaultdict(int)

    def subscribe(self, event_type: Type[GameEvent], handler: Handler) -> None:
        """Register handler for event_type (and its subclasses)."""
        self._subs.append((event_type, handler))

    def unsubscribe(self, event_type: Type[GameEvent], handler: Handler) -> bool:
        """Remove a handler. Returns False if it was not registered."""
        try:
            self._subs.remove((event_type, handler))
        except ValueError:
            return False
        return True

    def publish(self, event: GameEvent) -> None:
        """Deliver event to every matching subscriber right now."""
        self._counts[type(event).__name__] += 1
        for event_type, handler in list(self._subs):
            if not isinstance(event, event_type):
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(f"Event handler failed for {type(event).__name__}")

    def stats(self) -> Dict[str, int]:
        """Cumulative publish counts by event class name."""
        return dict(self._counts)

    def __repr__(self) -> str:
        return f"EventBus(subs={len(self._subs)})"
