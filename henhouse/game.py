"""
Main Game class - orchestrates all simulation systems.
NO UI DEPENDENCIES.

This is the central gameplay module. It owns the ledger, nodes, upgrades,
helpers, player dispatcher, day clock and tutorial, and it can be fully
tested without any UI framework.
"""
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Union

from .agents import AgentScheduler, AgentTimings
from .clock import DayClock
from .config import GameConfig
from .constants import DEFAULT_DT, SLOW_TICK_SECONDS
from .dispatcher import InteractionDispatcher
from .events import EventBus, GameEvent, ProgressReset
from .ledger import ResourceLedger
from .movement import Position
from .nodes import Field, Market, NodeKind, NodeRegistry, Producer, ProductionNode
from .persistence import Snapshot
from .tutorial import TutorialState
from .upgrades import UpgradeKind, UpgradeRegistry

logger = logging.getLogger(__name__)

FIELD_NAME = "field"
PRODUCER_NAME = "chicken"
MARKET_NAME = "store"


@dataclass
class GameStats:
    """Counters since the game was created or last reset."""
    corn_harvested: int = 0
    eggs_laid: int = 0
    eggs_collected: int = 0
    eggs_sold: int = 0
    coins_earned: int = 0
    interactions_accepted: int = 0
    interactions_rejected: int = 0
    ticks: int = 0
    elapsed: float = 0.0


class Game:
    """
    The main game class that orchestrates the simulation.

    This class is COMPLETELY DECOUPLED from UI.
    It exposes state as plain data and accepts commands as method calls.

    Usage:
        game = Game(seed=1)
        game.handle_input(game.field.position)
        while running:
            events = game.update(dt)
            # UI reads game state and renders
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        tutorial: bool = True,
        bus: Optional[EventBus] = None,
    ):
        self.config = config if config is not None else GameConfig()
        cfg = self.config

        self.bus = bus if bus is not None else EventBus()
        self.rng = random.Random(seed)

        # Events published since the last update() returned
        self._events: List[GameEvent] = []
        self.bus.subscribe(GameEvent, self._events_append)

        self.ledger = ResourceLedger(
            starting_corn=cfg.starting_corn,
            starting_eggs=cfg.starting_eggs,
            starting_coins=cfg.starting_coins,
            base_sell_price=cfg.base_sell_price,
            bus=self.bus,
        )

        self.field = Field(
            FIELD_NAME, Position.of(cfg.field_position), self.ledger,
            output=cfg.corn_per_harvest,
            cooldown_duration=cfg.harvest_cooldown,
            bus=self.bus,
        )
        self.producer = Producer(
            PRODUCER_NAME, Position.of(cfg.producer_position), self.ledger,
            output=cfg.yield_per_feed,
            busy_duration=cfg.lay_delay,
            cooldown_duration=cfg.producer_cooldown,
            bus=self.bus,
            feed_cost=cfg.feed_cost,
            auto_collect=cfg.auto_collect,
        )
        self.market = Market(
            MARKET_NAME, Position.of(cfg.market_position), self.ledger,
            output=1,
            cooldown_duration=cfg.sell_cooldown,
            bus=self.bus,
        )
        self.nodes = NodeRegistry([self.field, self.producer, self.market])

        self.upgrades = UpgradeRegistry.from_config(self.ledger, self.nodes, cfg.upgrades, self.bus)

        timings = AgentTimings(
            speed=cfg.agent_speed,
            action_time=cfg.agent_action_time,
            collect_time=cfg.agent_collect_time,
            wait_time=cfg.agent_wait_time,
            start_delay=cfg.agent_start_delay,
        )
        self.scheduler = AgentScheduler(
            self.ledger, self.nodes, timings,
            Position.of(cfg.agent_spawn_position),
            rng=self.rng,
            bus=self.bus,
        )

        self.dispatcher = InteractionDispatcher(
            self.nodes, self.ledger,
            start_position=Position.of(cfg.player_start_position),
            speed=cfg.player_speed,
            pick_radius=cfg.pick_radius,
            bus=self.bus,
        )

        self.clock = DayClock(cfg.day_length, cfg.day_start_time, bus=self.bus)
        self.tutorial: Optional[TutorialState] = TutorialState(bus=self.bus) if tutorial else None

        self._input_lock = threading.Lock()
        self._pending_inputs: List[Position] = []

        self.ticks: int = 0
        self.elapsed: float = 0.0

        logger.info(f"Game created (seed={seed}, coins={self.ledger.coins})")

    def _events_append(self, event: GameEvent) -> None:
        self._events.append(event)

    # =========================================================================
    # PLAYER COMMANDS
    # =========================================================================

    def handle_input(self, point: Union[Position, Sequence[float]]) -> Optional[ProductionNode]:
        """Click/tap at a world point, applied immediately."""
        if not isinstance(point, Position):
            point = Position.of(point)
        return self.dispatcher.handle_input(point)

    def queue_input(self, point: Union[Position, Sequence[float]]) -> None:
        """Thread-safe click/tap, applied at the start of the next tick."""
        if not isinstance(point, Position):
            point = Position.of(point)
        with self._input_lock:
            self._pending_inputs.append(point)

    def tap(self, node_name: str) -> Optional[ProductionNode]:
        """Click directly on a node by name."""
        node = self.nodes.get(node_name)
        if node is None:
            raise KeyError(node_name)
        return self.handle_input(node.position)

    def hire_agent(self) -> bool:
        """Buy one helper. Returns False if unaffordable."""
        agent = self.scheduler.hire(self.config.helper_base_cost, self.config.helper_cost_increment)
        return agent is not None

    def purchase_upgrade(self, kind: Union[UpgradeKind, str]) -> bool:
        """
        Buy the next level of an upgrade.
        Returns False if maxed or unaffordable; raises KeyError for an
        unknown kind.
        """
        return self.upgrades.purchase(self._upgrade_kind(kind))

    def acknowledge_tutorial(self) -> bool:
        if self.tutorial is None:
            return False
        return self.tutorial.acknowledge()

    def reset_progress(self) -> None:
        """Back to the starting configuration: no helpers, no upgrades."""
        with self._input_lock:
            self._pending_inputs.clear()
        self.dispatcher.cancel()
        self.scheduler.clear()
        self.upgrades.reset()
        for node in self.nodes:
            node.reset()
        self.ledger.reset()
        if self.tutorial is not None:
            self.tutorial.reset()
        logger.info("Progress reset")
        self.bus.publish(ProgressReset())

    @staticmethod
    def _upgrade_kind(kind: Union[UpgradeKind, str]) -> UpgradeKind:
        if isinstance(kind, UpgradeKind):
            return kind
        try:
            return UpgradeKind(kind)
        except ValueError:
            raise KeyError(kind) from None

    # =========================================================================
    # UPDATE LOOP
    # =========================================================================

    def update(self, dt: float) -> List[GameEvent]:
        """
        Advance the simulation by dt seconds.
        Returns the events published since the previous call.
        """
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")
        started = time.perf_counter()

        with self._input_lock:
            inputs, self._pending_inputs = self._pending_inputs, []
        for point in inputs:
            self.dispatcher.handle_input(point)

        # Timers first, so player and helper interactions land on the same footing
        for node in self.nodes:
            node.update(dt)
        self.dispatcher.update(dt)
        self.scheduler.update(dt)
        self.clock.update(dt)
        if self.tutorial is not None:
            self.tutorial.check_and_advance(self)

        self.ticks += 1
        self.elapsed += dt

        took = time.perf_counter() - started
        if took > SLOW_TICK_SECONDS:
            logger.warning(f"Slow tick {self.ticks}: {took * 1000:.1f}ms with {len(self.scheduler)} helpers")

        events, self._events = self._events, []
        return events

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def snapshot(self) -> Snapshot:
        """Current progress as a Snapshot."""
        values = self.ledger.snapshot()
        return Snapshot(
            corn=values["corn"],
            eggs=values["eggs"],
            coins=values["coins"],
            agent_count=values["agent_count"],
            corn_rate=values["corn_rate"],
            egg_rate=values["egg_rate"],
            price_rate=values["price_rate"],
            speed_rate=values["speed_rate"],
            upgrade_levels={kind.value: level for kind, level in self.upgrades.levels().items()},
            tutorial_completed=self.tutorial.is_complete() if self.tutorial else False,
        )

    def restore(self, snapshot: Optional[Snapshot]) -> bool:
        """
        Resume from a snapshot. None leaves the starting configuration.
        Saved helpers are respawned without charging coins.
        """
        if snapshot is None:
            return False

        self.dispatcher.cancel()
        self.scheduler.clear()
        self.upgrades.reset()
        for node in self.nodes:
            node.reset()

        self.ledger.restore(
            corn=snapshot.corn,
            eggs=snapshot.eggs,
            coins=snapshot.coins,
            agent_count=snapshot.agent_count,
            corn_rate=snapshot.corn_rate,
            egg_rate=snapshot.egg_rate,
            price_rate=snapshot.price_rate,
            speed_rate=snapshot.speed_rate,
        )

        levels = {}
        for key, level in snapshot.upgrade_levels.items():
            try:
                levels[UpgradeKind(key)] = level
            except ValueError:
                logger.warning(f"Ignoring unknown upgrade {key!r} in snapshot")
        self.upgrades.restore_levels(levels)

        self.scheduler.spawn_many(snapshot.agent_count)

        if self.tutorial is not None:
            if snapshot.tutorial_completed:
                self.tutorial.mark_complete()
            else:
                self.tutorial.reset()

        logger.info(
            f"Restored snapshot: {snapshot.coins} coins, {snapshot.agent_count} helpers"
        )
        return True

    # =========================================================================
    # STATE QUERIES (for UI to read)
    # =========================================================================

    def get_ledger_snapshot(self) -> Dict[str, float]:
        return self.ledger.snapshot()

    def get_hire_cost(self) -> int:
        return self.ledger.hire_cost(self.config.helper_base_cost, self.config.helper_cost_increment)

    def get_upgrade_offers(self) -> List[dict]:
        """
        Get upgrade buttons as plain dicts for UI.
        Returns list of {kind, level, max_level, cost, affordable, maxed}.
        """
        return [
            {
                'kind': o.kind.value,
                'level': o.level,
                'max_level': o.max_level,
                'cost': o.cost,
                'affordable': o.affordable,
                'maxed': o.maxed,
            }
            for o in self.upgrades.offers()
        ]

    def get_node_states(self) -> List[dict]:
        result = []
        for node in self.nodes:
            entry = {
                'name': node.name,
                'kind': node.kind.name,
                'state': node.state.name,
                'position': node.position.as_tuple(),
                'cooldown_remaining': node.cooldown_remaining,
                'output': node.output,
            }
            if node.kind == NodeKind.PRODUCER:
                entry['uncollected'] = node.uncollected
            result.append(entry)
        return result

    def get_agent_states(self) -> List[dict]:
        return [
            {
                'id': agent.id,
                'task': agent.task_state.name,
                'position': agent.position.as_tuple(),
                'cycles': agent.cycles_completed,
            }
            for agent in self.scheduler.agents
        ]

    def get_player_state(self) -> dict:
        pending = self.dispatcher.pending
        return {
            'position': self.dispatcher.position.as_tuple(),
            'moving': self.dispatcher.is_moving,
            'target': pending.name if pending else None,
        }

    def get_time_string(self) -> str:
        return self.clock.get_time_string()

    def get_tutorial_instruction(self) -> Optional[str]:
        """Get current tutorial instruction, or None if not in tutorial."""
        if self.tutorial is None:
            return None
        return self.tutorial.get_instruction()

    def is_tutorial_active(self) -> bool:
        return self.tutorial is not None and not self.tutorial.is_complete()

    def get_stats(self) -> GameStats:
        return GameStats(
            corn_harvested=self.field.corn_harvested,
            eggs_laid=self.producer.eggs_laid,
            eggs_collected=self.producer.eggs_collected,
            eggs_sold=self.market.eggs_sold,
            coins_earned=self.market.coins_earned,
            interactions_accepted=sum(n.accepted_count for n in self.nodes),
            interactions_rejected=sum(n.rejected_count for n in self.nodes),
            ticks=self.ticks,
            elapsed=self.elapsed,
        )

    # =========================================================================
    # CONVENIENCE METHODS FOR TESTING
    # =========================================================================

    def simulate(self, seconds: float, dt: float = DEFAULT_DT) -> List[GameEvent]:
        """
        Simulate the game for a number of seconds.
        Returns all events that occurred.
        """
        all_events = []
        elapsed = 0.0
        while elapsed < seconds:
            all_events.extend(self.update(dt))
            elapsed += dt
        return all_events

    def run_until(
        self,
        condition: Callable[['Game'], bool],
        timeout: float,
        dt: float = DEFAULT_DT,
    ) -> bool:
        """
        Tick until condition(game) holds or timeout simulated seconds pass.
        Returns whether the condition was met.
        """
        elapsed = 0.0
        while not condition(self):
            if elapsed >= timeout:
                return False
            self.update(dt)
            elapsed += dt
        return True

    def __repr__(self) -> str:
        return f"Game({self.ledger!r}, helpers={len(self.scheduler)}, day={self.clock.day})"
