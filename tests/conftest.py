"""
Shared fixtures for Henhouse tests.
"""
import pytest

from henhouse.config import GameConfig
from henhouse.events import EventBus, GameEvent
from henhouse.game import Game
from henhouse.ledger import ResourceLedger


@pytest.fixture
def config():
    """Default balance values."""
    return GameConfig()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def recorded(bus):
    """Every event published on `bus`, in order."""
    events = []
    bus.subscribe(GameEvent, events.append)
    return events


@pytest.fixture
def ledger(bus):
    """Ledger with the default starting balances (50 coins)."""
    return ResourceLedger(starting_coins=50, base_sell_price=10, bus=bus)


@pytest.fixture
def game(config):
    """Seeded game with the tutorial disabled."""
    return Game(config, seed=1234, tutorial=False)
