"""
Worker agents (helpers) and the scheduler that runs them.
NO UI DEPENDENCIES.

Each helper repeats the production cycle forever:

    field -> harvest -> producer -> feed -> collect -> market -> sell -> wait

Every step is a timed suspension point held as an explicit state plus a
remaining-duration field, advanced once per tick by AgentScheduler.update().
A step whose node refuses the interaction is re-polled on the next tick;
helpers never skip or abandon a step.
"""
import logging
import random
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Optional, Tuple

from .events import EventBus, AgentHired, AgentTaskChanged
from .ledger import ResourceLedger
from .movement import Mover, Position
from .nodes import NodeKind, NodeRegistry, Field, Producer, Market, ProductionNode

logger = logging.getLogger(__name__)


class TaskState(Enum):
    IDLE = auto()
    MOVING_TO_FIELD = auto()
    HARVESTING = auto()
    MOVING_TO_PRODUCER = auto()
    FEEDING = auto()
    COLLECTING = auto()
    MOVING_TO_MARKET = auto()
    SELLING = auto()
    WAITING = auto()


@dataclass(frozen=True)
class AgentTimings:
    """Durations (seconds, before speed scaling) for the helper cycle."""
    speed: float = 3.0
    action_time: float = 0.3
    collect_time: float = 0.3
    wait_time: float = 0.5
    start_delay: Tuple[float, float] = (0.5, 2.0)


@dataclass(frozen=True)
class CycleRoute:
    """The three nodes a helper visits, in order."""
    field: Field
    producer: Producer
    market: Market

    @classmethod
    def from_registry(cls, nodes: NodeRegistry) -> 'CycleRoute':
        field = nodes.first_of(NodeKind.FIELD)
        producer = nodes.first_of(NodeKind.PRODUCER)
        market = nodes.first_of(NodeKind.MARKET)
        if field is None or producer is None or market is None:
            raise ValueError("helpers need a field, a producer and a market")
        return cls(field, producer, market)


# Where each movement state leads once the helper arrives
_ARRIVAL = {
    TaskState.MOVING_TO_FIELD: TaskState.HARVESTING,
    TaskState.MOVING_TO_PRODUCER: TaskState.FEEDING,
    TaskState.MOVING_TO_MARKET: TaskState.SELLING,
}

# What follows each interaction step once its pause is over
_AFTER_ACTION = {
    TaskState.HARVESTING: TaskState.MOVING_TO_PRODUCER,
    TaskState.FEEDING: TaskState.COLLECTING,
    TaskState.SELLING: TaskState.WAITING,
}


class WorkerAgent:
    """
    A single autonomous helper.

    The helper only ever touches the economy through node.interact(),
    producer.collect() and the ledger's own atomic operations, and it
    re-checks the node on every poll instead of trusting an earlier read.
    """

    def __init__(
        self,
        agent_id: int,
        ledger: ResourceLedger,
        route: CycleRoute,
        timings: AgentTimings,
        position: Position,
        start_delay: float = 0.0,
        bus: Optional[EventBus] = None,
    ):
        self.id = agent_id
        self.ledger = ledger
        self.route = route
        self.timings = timings
        self.bus = bus

        self.mover = Mover(position, timings.speed)
        self.task_state = TaskState.IDLE
        self.timer: float = start_delay
        self._acted: bool = False

        self.cycles_completed: int = 0
        self.polls_refused: int = 0

    @property
    def position(self) -> Position:
        return self.mover.position

    def _node_for(self, state: TaskState) -> ProductionNode:
        if state == TaskState.HARVESTING:
            return self.route.field
        if state == TaskState.FEEDING:
            return self.route.producer
        return self.route.market

    # =========================================================================
    # UPDATE
    # =========================================================================

    def update(self, dt: float) -> None:
        """Advance this helper by one tick."""
        rate = self.ledger.speed_rate
        state = self.task_state

        if state == TaskState.IDLE:
            # Start stagger is wall-clock, not speed-scaled
            self.timer -= dt
            if self.timer <= 0:
                self._go(TaskState.MOVING_TO_FIELD, self.route.field.position)

        elif state in _ARRIVAL:
            if self.mover.step(dt, rate):
                self._enter(_ARRIVAL[state])

        elif state in _AFTER_ACTION:
            self._update_action(state, dt * rate)

        elif state == TaskState.COLLECTING:
            self._update_collecting(dt * rate)

        elif state == TaskState.WAITING:
            self.timer -= dt * rate
            if self.timer <= 0:
                self.cycles_completed += 1
                self._go(TaskState.MOVING_TO_FIELD, self.route.field.position)

    def _update_action(self, state: TaskState, scaled_dt: float) -> None:
        if not self._acted:
            if not self._node_for(state).interact():
                self.polls_refused += 1
                return
            self._acted = True
            self.timer = self.timings.action_time
            return

        self.timer -= scaled_dt
        if self.timer > 0:
            return

        next_state = _AFTER_ACTION[state]
        if next_state == TaskState.MOVING_TO_PRODUCER:
            self._go(next_state, self.route.producer.position)
        else:
            self._enter(next_state)

    def _update_collecting(self, scaled_dt: float) -> None:
        self.timer -= scaled_dt
        if self.timer > 0:
            return

        producer = self.route.producer
        if producer.uncollected > 0:
            producer.collect()
        elif producer.is_laying:
            # Egg not out yet
            return

        self._go(TaskState.MOVING_TO_MARKET, self.route.market.position)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def _go(self, state: TaskState, target: Position) -> None:
        self.mover.move_to(target)
        self._set_task(state)

    def _enter(self, state: TaskState) -> None:
        self._acted = False
        if state == TaskState.COLLECTING:
            self.timer = self.timings.collect_time
        elif state == TaskState.WAITING:
            self.timer = self.timings.wait_time
        else:
            self.timer = 0.0
        self._set_task(state)

    def _set_task(self, new_task: TaskState) -> None:
        old_task = self.task_state
        self.task_state = new_task
        logger.debug(f"Helper {self.id}: {old_task.name} -> {new_task.name}")
        if self.bus is not None:
            self.bus.publish(AgentTaskChanged(self.id, old_task, new_task))

    def __repr__(self) -> str:
        return f"WorkerAgent({self.id}, {self.task_state.name})"


class AgentScheduler:
    """
    Owns every helper and advances them once per tick.

    Helpers are updated in hire order; nothing else about their relative
    order is promised.
    """

    def __init__(
        self,
        ledger: ResourceLedger,
        nodes: NodeRegistry,
        timings: AgentTimings,
        spawn_position: Position,
        rng: Optional[random.Random] = None,
        bus: Optional[EventBus] = None,
    ):
        self.ledger = ledger
        self.route = CycleRoute.from_registry(nodes)
        self.timings = timings
        self.spawn_position = spawn_position
        self.rng = rng if rng is not None else random.Random()
        self.bus = bus

        self.agents: List[WorkerAgent] = []
        self._next_id: int = 1

    def hire(self, base_cost: int, increment: int) -> Optional[WorkerAgent]:
        """
        Pay for a helper through the ledger and spawn it.
        Returns the new helper, or None if the ledger refused.
        """
        cost = self.ledger.hire_cost(base_cost, increment)
        if not self.ledger.hire_agent(base_cost, increment):
            return None
        agent = self.spawn()
        logger.info(f"Hired helper {agent.id} for {cost} coins")
        if self.bus is not None:
            self.bus.publish(AgentHired(agent.id, cost))
        return agent

    def spawn(self) -> WorkerAgent:
        """Create a helper without charging for it."""
        low, high = self.timings.start_delay
        agent = WorkerAgent(
            agent_id=self._next_id,
            ledger=self.ledger,
            route=self.route,
            timings=self.timings,
            position=self.spawn_position,
            start_delay=self.rng.uniform(low, high),
            bus=self.bus,
        )
        self._next_id += 1
        self.agents.append(agent)
        return agent

    def spawn_many(self, count: int) -> List[WorkerAgent]:
        return [self.spawn() for _ in range(count)]

    def update(self, dt: float) -> None:
        for agent in self.agents:
            agent.update(dt)

    def clear(self) -> None:
        """Drop every helper (only used by a full progress reset)."""
        self.agents.clear()
        self._next_id = 1

    def task_counts(self) -> Dict[TaskState, int]:
        counts: Dict[TaskState, int] = {}
        for agent in self.agents:
            counts[agent.task_state] = counts.get(agent.task_state, 0) + 1
        return counts

    def __len__(self) -> int:
        return len(self.agents)
