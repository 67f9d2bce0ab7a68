"""
Configuration management for Henhouse.

Two layers:
- Settings: runtime knobs read from environment variables (pydantic-settings).
- GameConfig: balance values for one game, loaded from a JSON file or
  built from the defaults in constants.py.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from henhouse import constants as C
from henhouse.upgrades import UpgradeKind

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Runtime settings loaded from HENHOUSE_* environment variables."""

    config_path: Optional[str] = Field(
        default=None,
        description="JSON file with GameConfig overrides. None uses built-in defaults"
    )
    save_path: str = Field(
        default="saves/henhouse.json",
        description="Where the flat key-value snapshot is written on shutdown"
    )
    tick_rate_ms: int = Field(
        default=100,
        description="Tick rate in milliseconds when running in real time"
    )
    log_level: str = Field(default="INFO")
    seed: Optional[int] = Field(
        default=None,
        description="Seed for agent start delays. None means nondeterministic"
    )
    autosave_interval_seconds: float = Field(
        default=30.0,
        description="Simulated seconds between snapshot writes. 0 disables autosave"
    )

    class Config:
        env_prefix = "HENHOUSE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class UpgradeConfig(BaseModel):
    """Static definition of one upgrade kind."""

    base_cost: int = Field(..., gt=0)
    cost_growth: float = Field(default=1.5, ge=1.0)
    max_level: int = Field(default=5, ge=0, description="0 means unlimited")
    effect_multiplier: float = Field(default=1.2, gt=0)
    flat_bonus: int = Field(default=0, ge=0)


def _default_upgrades() -> Dict[UpgradeKind, UpgradeConfig]:
    upgrades = {}
    for key, (base_cost, growth, max_level, mult, bonus) in C.UPGRADE_DEFAULTS.items():
        upgrades[UpgradeKind(key)] = UpgradeConfig(
            base_cost=base_cost,
            cost_growth=growth,
            max_level=max_level,
            effect_multiplier=mult,
            flat_bonus=bonus,
        )
    return upgrades


class GameConfig(BaseModel):
    """Balance values for a game session."""

    # Starting resources
    starting_corn: int = Field(default=C.STARTING_CORN, ge=0)
    starting_eggs: int = Field(default=C.STARTING_EGGS, ge=0)
    starting_coins: int = Field(default=C.STARTING_COINS, ge=0)

    # Production
    corn_per_harvest: int = Field(default=C.CORN_PER_HARVEST, ge=0)
    harvest_cooldown: float = Field(default=C.HARVEST_COOLDOWN, ge=0)
    feed_cost: int = Field(default=C.FEED_COST, ge=0)
    yield_per_feed: int = Field(default=C.YIELD_PER_FEED, ge=0)
    lay_delay: float = Field(default=C.LAY_DELAY, ge=0)
    producer_cooldown: float = Field(default=C.PRODUCER_COOLDOWN, ge=0)
    sell_cooldown: float = Field(default=C.SELL_COOLDOWN, ge=0)
    auto_collect: bool = Field(
        default=True,
        description="Credit laid eggs immediately instead of leaving them to be collected"
    )

    # Economy
    base_sell_price: int = Field(default=C.BASE_SELL_PRICE, ge=0)
    helper_base_cost: int = Field(default=C.HELPER_BASE_COST, ge=0)
    helper_cost_increment: int = Field(default=C.HELPER_COST_INCREMENT, ge=0)

    # Actors
    agent_speed: float = Field(default=C.AGENT_SPEED, gt=0)
    agent_wait_time: float = Field(default=C.AGENT_WAIT_TIME, ge=0)
    agent_action_time: float = Field(default=C.AGENT_ACTION_TIME, ge=0)
    agent_collect_time: float = Field(default=C.AGENT_COLLECT_TIME, ge=0)
    agent_start_delay: Tuple[float, float] = Field(
        default=(C.AGENT_START_DELAY_MIN, C.AGENT_START_DELAY_MAX)
    )
    player_speed: float = Field(default=C.PLAYER_SPEED, gt=0)
    pick_radius: float = Field(default=C.PICK_RADIUS, gt=0)

    # Layout
    field_position: Tuple[float, float] = C.FIELD_POSITION
    producer_position: Tuple[float, float] = C.PRODUCER_POSITION
    market_position: Tuple[float, float] = C.MARKET_POSITION
    agent_spawn_position: Tuple[float, float] = C.AGENT_SPAWN_POSITION
    player_start_position: Tuple[float, float] = C.PLAYER_START_POSITION

    # Day clock
    day_length: float = Field(default=C.DAY_LENGTH, ge=C.MIN_DAY_LENGTH)
    day_start_time: float = Field(default=C.DAY_START_TIME, ge=0, lt=1)

    upgrades: Dict[UpgradeKind, UpgradeConfig] = Field(default_factory=_default_upgrades)

    @field_validator("agent_start_delay")
    @classmethod
    def _check_delay_range(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        low, high = value
        if low < 0 or high < low:
            raise ValueError("agent_start_delay must be (min, max) with 0 <= min <= max")
        return value

    @field_validator("upgrades")
    @classmethod
    def _fill_missing_upgrades(
        cls, value: Dict[UpgradeKind, UpgradeConfig]
    ) -> Dict[UpgradeKind, UpgradeConfig]:
        # A config file may override only some kinds; every kind must exist.
        merged = _default_upgrades()
        merged.update(value)
        return merged


def load_game_config(path: Optional[str] = None) -> GameConfig:
    """
    Load a GameConfig from a JSON file.

    None returns the built-in defaults. Invalid values raise
    pydantic.ValidationError; a missing file raises FileNotFoundError.
    """
    if path is None:
        return GameConfig()

    config_file = Path(path)
    config = GameConfig.model_validate_json(config_file.read_text(encoding="utf-8"))
    logger.info(f"Loaded game config from {config_file}")
    return config
