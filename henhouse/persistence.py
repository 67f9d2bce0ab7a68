"""
Flat key-value snapshot of a game and the JSON file that stores it.
NO UI DEPENDENCIES.

Keys on disk:

    corn, eggs, coins, agentCount,
    cornRate, eggRate, priceRate, speedRate,
    upgradeLevel.<kind>, tutorialCompleted

A missing file, an empty mapping or a mapping without "corn" means there
is no prior save.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

UPGRADE_KEY_PREFIX = "upgradeLevel."


class Snapshot(BaseModel):
    """Everything needed to resume a game."""

    corn: int = Field(..., ge=0)
    eggs: int = Field(default=0, ge=0)
    coins: int = Field(default=0, ge=0)
    agent_count: int = Field(default=0, ge=0, alias="agentCount")
    corn_rate: float = Field(default=1.0, gt=0, alias="cornRate")
    egg_rate: float = Field(default=1.0, gt=0, alias="eggRate")
    price_rate: float = Field(default=1.0, gt=0, alias="priceRate")
    speed_rate: float = Field(default=1.0, gt=0, alias="speedRate")
    upgrade_levels: Dict[str, int] = Field(default_factory=dict)
    tutorial_completed: bool = Field(default=False, alias="tutorialCompleted")

    class Config:
        populate_by_name = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Optional['Snapshot']:
        """
        Parse a flat mapping. Returns None when there is no prior save.
        Raises pydantic.ValidationError for values out of range.
        """
        if not data or "corn" not in data:
            return None

        fields = {}
        levels = {}
        for key, value in data.items():
            if key.startswith(UPGRADE_KEY_PREFIX):
                levels[key[len(UPGRADE_KEY_PREFIX):]] = value
            else:
                fields[key] = value
        fields["upgrade_levels"] = levels
        return cls.model_validate(fields)

    def to_mapping(self) -> Dict[str, Any]:
        """The flat form written to disk."""
        data = self.model_dump(by_alias=True, exclude={"upgrade_levels"})
        for kind, level in sorted(self.upgrade_levels.items()):
            data[f"{UPGRADE_KEY_PREFIX}{kind}"] = level
        return data


class JsonSnapshotStore:
    """
    Reads and writes a Snapshot as a single JSON object.

    Usage:
        store = JsonSnapshotStore("saves/henhouse.json")
        snapshot = store.load()       # None on first run
        store.save(game.snapshot())
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Optional[Snapshot]:
        """
        Returns the saved snapshot, or None if there is no usable save.
        A corrupt file is logged and treated as no save.
        """
        if not self.path.is_file():
            logger.info(f"No snapshot at {self.path}, starting fresh")
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Corrupt snapshot {self.path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Corrupt snapshot {self.path}: expected an object")
            return None

        try:
            snapshot = Snapshot.from_mapping(data)
        except ValidationError as e:
            logger.warning(f"Invalid snapshot {self.path}: {e.error_count()} errors")
            return None

        if snapshot is None:
            logger.info(f"Snapshot {self.path} is empty, starting fresh")
            return None

        logger.info(f"Loaded snapshot from {self.path}")
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        """Write atomically: temp file in the same directory, then rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(snapshot.to_mapping(), indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
        logger.info(f"Saved snapshot to {self.path}")

    def clear(self) -> bool:
        """Delete the save file. Returns False if there was none."""
        if not self.path.is_file():
            return False
        self.path.unlink()
        logger.info(f"Deleted snapshot {self.path}")
        return True
