"""
Upgrade definitions and the registry that sells them.
NO UI DEPENDENCIES.
"""
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, TYPE_CHECKING

from .events import EventBus, UpgradePurchased
from .ledger import ResourceLedger, RateKind, round_half_up
from .nodes import NodeKind, NodeRegistry

if TYPE_CHECKING:
    from .config import UpgradeConfig

logger = logging.getLogger(__name__)


class UpgradeKind(str, Enum):
    CORN_YIELD = "corn_yield"
    EGG_YIELD = "egg_yield"
    SELL_PRICE = "sell_price"
    SPEED = "speed"
    CAPACITY = "capacity"


# Which ledger rate each kind compounds (CAPACITY has none)
RATE_FOR_UPGRADE: Dict[UpgradeKind, RateKind] = {
    UpgradeKind.CORN_YIELD: RateKind.CORN,
    UpgradeKind.EGG_YIELD: RateKind.EGG,
    UpgradeKind.SELL_PRICE: RateKind.PRICE,
    UpgradeKind.SPEED: RateKind.SPEED,
}

# Which node's per-cycle output a flat bonus raises
NODE_FOR_UPGRADE: Dict[UpgradeKind, NodeKind] = {
    UpgradeKind.CORN_YIELD: NodeKind.FIELD,
    UpgradeKind.EGG_YIELD: NodeKind.PRODUCER,
    UpgradeKind.CAPACITY: NodeKind.MARKET,
}


@dataclass
class UpgradeDefinition:
    """One purchasable upgrade and its current level."""
    kind: UpgradeKind
    base_cost: int
    cost_growth: float = 1.5
    max_level: int = 5            # 0 = unlimited
    effect_multiplier: float = 1.2
    flat_bonus: int = 0
    current_level: int = 0

    def __post_init__(self):
        if self.base_cost <= 0:
            raise ValueError(f"{self.kind.value}: base_cost must be positive")
        if self.cost_growth < 1.0:
            raise ValueError(f"{self.kind.value}: cost_growth must be >= 1")
        if self.effect_multiplier <= 0:
            raise ValueError(f"{self.kind.value}: effect_multiplier must be positive")
        if self.max_level < 0 or self.flat_bonus < 0 or self.current_level < 0:
            raise ValueError(f"{self.kind.value}: levels and bonus must be non-negative")

    @property
    def cost(self) -> int:
        """Coins for the next level: base * growth ^ level, rounded."""
        return round_half_up(self.base_cost * self.cost_growth ** self.current_level)

    @property
    def is_maxed(self) -> bool:
        return self.max_level > 0 and self.current_level >= self.max_level

    @property
    def total_multiplier(self) -> float:
        """Combined rate effect of every level bought so far."""
        return self.effect_multiplier ** self.current_level

    @property
    def total_flat_bonus(self) -> int:
        return self.flat_bonus * self.current_level

    @classmethod
    def from_config(cls, kind: UpgradeKind, config: 'UpgradeConfig') -> 'UpgradeDefinition':
        return cls(
            kind=kind,
            base_cost=config.base_cost,
            cost_growth=config.cost_growth,
            max_level=config.max_level,
            effect_multiplier=config.effect_multiplier,
            flat_bonus=config.flat_bonus,
        )


@dataclass(frozen=True)
class UpgradeOffer:
    """What the UI needs to draw one upgrade button."""
    kind: UpgradeKind
    level: int
    max_level: int
    cost: int
    affordable: bool
    maxed: bool


class UpgradeRegistry:
    """
    Owns one UpgradeDefinition per kind and applies purchases to the
    ledger and nodes.
    """

    def __init__(
        self,
        ledger: ResourceLedger,
        nodes: NodeRegistry,
        definitions: List[UpgradeDefinition],
        bus: Optional[EventBus] = None,
    ):
        self.ledger = ledger
        self.nodes = nodes
        self.bus = bus
        self._lock = threading.RLock()
        self.definitions: Dict[UpgradeKind, UpgradeDefinition] = {}
        for definition in definitions:
            if definition.kind in self.definitions:
                raise ValueError(f"duplicate upgrade kind {definition.kind.value}")
            self.definitions[definition.kind] = definition

    @classmethod
    def from_config(
        cls,
        ledger: ResourceLedger,
        nodes: NodeRegistry,
        configs: Mapping[UpgradeKind, 'UpgradeConfig'],
        bus: Optional[EventBus] = None,
    ) -> 'UpgradeRegistry':
        definitions = [UpgradeDefinition.from_config(k, c) for k, c in configs.items()]
        return cls(ledger, nodes, definitions, bus)

    def get(self, kind: UpgradeKind) -> UpgradeDefinition:
        """Raises KeyError for a kind with no definition."""
        return self.definitions[kind]

    def cost(self, kind: UpgradeKind) -> int:
        return self.get(kind).cost

    def can_purchase(self, kind: UpgradeKind) -> bool:
        definition = self.get(kind)
        return not definition.is_maxed and self.ledger.can_afford(definition.cost)

    def purchase(self, kind: UpgradeKind) -> bool:
        """
        Buy the next level of an upgrade.
        Returns False (and changes nothing) at max level or when short on coins.
        """
        definition = self.get(kind)
        with self._lock:
            if definition.is_maxed:
                return False

            # Reserve the level before paying; spend_coins publishes CoinsChanged
            cost = definition.cost
            definition.current_level += 1
            if not self.ledger.spend_coins(cost):
                definition.current_level -= 1
                return False
            level = definition.current_level

        rate = RATE_FOR_UPGRADE.get(kind)
        if rate is not None:
            self.ledger.apply_rate_multiplier(rate, definition.effect_multiplier)

        if definition.flat_bonus > 0:
            self._apply_flat_bonus(kind, definition.flat_bonus)

        logger.info(f"Upgrade {kind.value} bought for {cost} coins (level {level})")
        if self.bus is not None:
            self.bus.publish(UpgradePurchased(kind, level, cost))
        return True

    def _apply_flat_bonus(self, kind: UpgradeKind, bonus: int) -> None:
        node_kind = NODE_FOR_UPGRADE.get(kind)
        if node_kind is None:
            return
        for node in self.nodes.of_kind(node_kind):
            node.add_output_bonus(bonus)

    def offers(self) -> List[UpgradeOffer]:
        """Cost and affordability of every upgrade, for the UI."""
        return [
            UpgradeOffer(
                kind=d.kind,
                level=d.current_level,
                max_level=d.max_level,
                cost=d.cost,
                affordable=self.ledger.can_afford(d.cost),
                maxed=d.is_maxed,
            )
            for d in self.definitions.values()
        ]

    def levels(self) -> Dict[UpgradeKind, int]:
        return {kind: d.current_level for kind, d in self.definitions.items()}

    def restore_levels(self, levels: Mapping[UpgradeKind, int]) -> None:
        """
        Set levels from a snapshot without charging coins. Rates are
        restored separately by the ledger; node outputs are set to their
        configured amount plus the restored flat bonus.
        """
        for kind, level in levels.items():
            definition = self.definitions.get(kind)
            if definition is None:
                continue
            if definition.max_level > 0:
                level = min(level, definition.max_level)
            definition.current_level = max(0, level)
            node_kind = NODE_FOR_UPGRADE.get(kind)
            if definition.flat_bonus > 0 and node_kind is not None:
                for node in self.nodes.of_kind(node_kind):
                    node.set_output_bonus(definition.total_flat_bonus)

    def reset(self) -> None:
        """Every upgrade back to level 0."""
        for definition in self.definitions.values():
            definition.current_level = 0

    def __iter__(self) -> Iterator[UpgradeDefinition]:
        return iter(self.definitions.values())
