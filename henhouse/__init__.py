"""
Henhouse - simulation core of an idle chicken-coop game.

Pure gameplay logic, fully testable without a UI framework.
"""

from .game import Game, GameStats
from .config import GameConfig, Settings, get_settings, load_game_config
from .events import EventBus
from .persistence import JsonSnapshotStore, Snapshot

__version__ = "0.1.0"

__all__ = [
    "Game",
    "GameStats",
    "GameConfig",
    "Settings",
    "get_settings",
    "load_game_config",
    "EventBus",
    "JsonSnapshotStore",
    "Snapshot",
]
