"""
Resource ledger - the single source of truth for the economy.
NO UI DEPENDENCIES.

Every operation that can decrement a balance checks sufficiency and
mutates inside one locked step, so two callers can never both spend the
same corn, egg or coin.
"""
import logging
import math
import threading
from enum import Enum
from typing import Dict, List, Optional

from .events import (
    EventBus, GameEvent, CornChanged, EggsChanged, CoinsChanged, AgentCountChanged,
)

logger = logging.getLogger(__name__)


class RateKind(str, Enum):
    """The four compounding multipliers kept by the ledger."""
    CORN = "corn"     # applied to corn gains
    EGG = "egg"       # applied to egg gains
    PRICE = "price"   # applied to the egg sell price
    SPEED = "speed"   # divides every timed duration


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def _check_amount(amount: int) -> None:
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")


class ResourceLedger:
    """
    Corn, egg and coin balances plus the rate multipliers.

    Usage:
        ledger = ResourceLedger(starting_coins=50, base_sell_price=10)
        ledger.add_corn(1)
        if ledger.use_corn(1):
            ...
    """

    def __init__(
        self,
        starting_corn: int = 0,
        starting_eggs: int = 0,
        starting_coins: int = 0,
        base_sell_price: int = 10,
        bus: Optional[EventBus] = None,
    ):
        for amount in (starting_corn, starting_eggs, starting_coins, base_sell_price):
            _check_amount(amount)

        self._lock = threading.RLock()
        self.bus = bus
        self.base_sell_price = base_sell_price

        self._starting = (starting_corn, starting_eggs, starting_coins)
        self.corn = starting_corn
        self.eggs = starting_eggs
        self.coins = starting_coins
        self.agent_count = 0

        self.rates: Dict[RateKind, float] = {kind: 1.0 for kind in RateKind}

    # =========================================================================
    # RATES
    # =========================================================================

    @property
    def corn_rate(self) -> float:
        return self.rates[RateKind.CORN]

    @property
    def egg_rate(self) -> float:
        return self.rates[RateKind.EGG]

    @property
    def price_rate(self) -> float:
        return self.rates[RateKind.PRICE]

    @property
    def speed_rate(self) -> float:
        return self.rates[RateKind.SPEED]

    def apply_rate_multiplier(self, kind: RateKind, factor: float) -> float:
        """Compound a rate by factor. Returns the new rate."""
        if factor <= 0:
            raise ValueError(f"rate factor must be positive, got {factor}")
        with self._lock:
            self.rates[kind] *= factor
            new_rate = self.rates[kind]
        logger.debug(f"{kind.value} rate x{factor} -> {new_rate:.4f}")
        return new_rate

    # =========================================================================
    # CORN
    # =========================================================================

    def add_corn(self, amount: int) -> int:
        """Add corn scaled by the corn rate. Returns the amount credited."""
        _check_amount(amount)
        with self._lock:
            gained = round_half_up(amount * self.corn_rate)
            self.corn += gained
            value = self.corn
        self._publish([CornChanged(value)])
        return gained

    def use_corn(self, amount: int) -> bool:
        """Consume exactly amount corn. False (and no change) if short."""
        _check_amount(amount)
        with self._lock:
            if self.corn < amount:
                return False
            self.corn -= amount
            value = self.corn
        self._publish([CornChanged(value)])
        return True

    # =========================================================================
    # EGGS
    # =========================================================================

    def add_egg(self, amount: int) -> int:
        """Add eggs scaled by the egg rate. Returns the amount credited."""
        _check_amount(amount)
        with self._lock:
            gained = round_half_up(amount * self.egg_rate)
            self.eggs += gained
            value = self.eggs
        self._publish([EggsChanged(value)])
        return gained

    @property
    def sell_price(self) -> int:
        """Coins credited for the next egg sold."""
        return round_half_up(self.base_sell_price * self.price_rate)

    def sell_one_egg(self) -> bool:
        """Trade one egg for the current sell price. False if no eggs."""
        with self._lock:
            if self.eggs < 1:
                return False
            self.eggs -= 1
            price = self.sell_price
            self.coins += price
            eggs, coins = self.eggs, self.coins
        self._publish([EggsChanged(eggs), CoinsChanged(coins)])
        return True

    # =========================================================================
    # COINS AND HELPERS
    # =========================================================================

    def can_afford(self, amount: int) -> bool:
        return self.coins >= amount

    def add_coins(self, amount: int) -> None:
        _check_amount(amount)
        with self._lock:
            self.coins += amount
            value = self.coins
        self._publish([CoinsChanged(value)])

    def spend_coins(self, amount: int) -> bool:
        """Spend amount coins. False (and no change) if short."""
        _check_amount(amount)
        with self._lock:
            if self.coins < amount:
                return False
            self.coins -= amount
            value = self.coins
        self._publish([CoinsChanged(value)])
        return True

    def hire_cost(self, base_cost: int, increment: int) -> int:
        """Cost of the next helper given how many are already hired."""
        return base_cost + self.agent_count * increment

    def hire_agent(self, base_cost: int, increment: int) -> bool:
        """Pay for and count one more helper. False if unaffordable."""
        with self._lock:
            cost = self.hire_cost(base_cost, increment)
            _check_amount(cost)
            if self.coins < cost:
                return False
            self.coins -= cost
            self.agent_count += 1
            coins, agents = self.coins, self.agent_count
        self._publish([CoinsChanged(coins), AgentCountChanged(agents)])
        return True

    # =========================================================================
    # RESET / SNAPSHOT
    # =========================================================================

    def reset(
        self,
        starting_corn: Optional[int] = None,
        starting_eggs: Optional[int] = None,
        starting_coins: Optional[int] = None,
    ) -> None:
        """Restore starting balances, zero helpers and all rates to 1.0."""
        corn, eggs, coins = self._starting
        with self._lock:
            self.corn = corn if starting_corn is None else starting_corn
            self.eggs = eggs if starting_eggs is None else starting_eggs
            self.coins = coins if starting_coins is None else starting_coins
            self.agent_count = 0
            for kind in RateKind:
                self.rates[kind] = 1.0
        self._publish_all()

    def snapshot(self) -> Dict[str, float]:
        """Current balances and rates as a flat mapping."""
        with self._lock:
            return {
                "corn": self.corn,
                "eggs": self.eggs,
                "coins": self.coins,
                "agent_count": self.agent_count,
                "corn_rate": self.corn_rate,
                "egg_rate": self.egg_rate,
                "price_rate": self.price_rate,
                "speed_rate": self.speed_rate,
            }

    def restore(
        self,
        corn: int,
        eggs: int,
        coins: int,
        agent_count: int,
        corn_rate: float = 1.0,
        egg_rate: float = 1.0,
        price_rate: float = 1.0,
        speed_rate: float = 1.0,
    ) -> None:
        """Overwrite every field from saved values."""
        for amount in (corn, eggs, coins, agent_count):
            _check_amount(amount)
        for rate in (corn_rate, egg_rate, price_rate, speed_rate):
            if rate <= 0:
                raise ValueError(f"rates must be positive, got {rate}")
        with self._lock:
            self.corn, self.eggs, self.coins = corn, eggs, coins
            self.agent_count = agent_count
            self.rates[RateKind.CORN] = corn_rate
            self.rates[RateKind.EGG] = egg_rate
            self.rates[RateKind.PRICE] = price_rate
            self.rates[RateKind.SPEED] = speed_rate
        self._publish_all()

    def _publish_all(self) -> None:
        self._publish([
            CornChanged(self.corn),
            EggsChanged(self.eggs),
            CoinsChanged(self.coins),
            AgentCountChanged(self.agent_count),
        ])

    def _publish(self, events: List[GameEvent]) -> None:
        if self.bus is None:
            return
        for event in events:
            self.bus.publish(event)

    def __repr__(self) -> str:
        return (
            f"ResourceLedger(corn={self.corn}, eggs={self.eggs}, coins={self.coins}, "
            f"agents={self.agent_count})"
        )
