"""
Tests for snapshots and the JSON snapshot store.
"""
import json

import pytest
from pydantic import ValidationError

from henhouse.persistence import JsonSnapshotStore, Snapshot


class TestSnapshot:
    """Tests for the flat key-value form."""

    def test_no_prior_save(self):
        """Empty mappings and mappings without corn mean no save."""
        assert Snapshot.from_mapping({}) is None
        assert Snapshot.from_mapping({"coins": 10}) is None

    def test_from_flat_keys(self):
        """camelCase keys and upgradeLevel.* keys are understood."""
        snapshot = Snapshot.from_mapping({
            "corn": 2,
            "eggs": 1,
            "coins": 75,
            "agentCount": 1,
            "priceRate": 1.44,
            "upgradeLevel.sell_price": 2,
            "tutorialCompleted": True,
        })

        assert snapshot.agent_count == 1
        assert snapshot.price_rate == pytest.approx(1.44)
        assert snapshot.speed_rate == 1.0
        assert snapshot.upgrade_levels == {"sell_price": 2}
        assert snapshot.tutorial_completed

    def test_to_mapping(self):
        """The written form uses the flat keys."""
        snapshot = Snapshot(corn=1, eggs=2, coins=3, agent_count=4, upgrade_levels={"speed": 1})
        data = snapshot.to_mapping()

        assert data["agentCount"] == 4
        assert data["cornRate"] == 1.0
        assert data["upgradeLevel.speed"] == 1
        assert "upgrade_levels" not in data
        assert set(data) >= {
            "corn", "eggs", "coins", "agentCount",
            "cornRate", "eggRate", "priceRate", "speedRate",
        }

    def test_invalid_values(self):
        """Negative balances and non-positive rates are rejected."""
        with pytest.raises(ValidationError):
            Snapshot.from_mapping({"corn": -1})
        with pytest.raises(ValidationError):
            Snapshot.from_mapping({"corn": 0, "speedRate": 0})


class TestJsonSnapshotStore:
    """Tests for reading and writing the save file."""

    def test_missing_file(self, tmp_path):
        """No file means no prior save."""
        store = JsonSnapshotStore(str(tmp_path / "save.json"))
        assert not store.exists()
        assert store.load() is None

    def test_save_and_load(self, tmp_path):
        """A saved snapshot loads back unchanged."""
        store = JsonSnapshotStore(str(tmp_path / "nested" / "save.json"))
        snapshot = Snapshot(corn=4, eggs=0, coins=120, agent_count=2, speed_rate=1.2)

        store.save(snapshot)

        assert store.exists()
        assert store.load() == snapshot
        raw = json.loads((tmp_path / "nested" / "save.json").read_text())
        assert raw["coins"] == 120

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"corn": -5}'])
    def test_corrupt_file(self, tmp_path, caplog, content):
        """Corrupt saves are logged and ignored."""
        path = tmp_path / "save.json"
        path.write_text(content)

        assert JsonSnapshotStore(str(path)).load() is None
        assert "snapshot" in caplog.text.lower()

    def test_empty_object(self, tmp_path):
        """An empty object is treated as no save."""
        path = tmp_path / "save.json"
        path.write_text("{}")
        assert JsonSnapshotStore(str(path)).load() is None

    def test_clear(self, tmp_path):
        """clear() removes the file once."""
        store = JsonSnapshotStore(str(tmp_path / "save.json"))
        store.save(Snapshot(corn=0))

        assert store.clear()
        assert not store.clear()
        assert store.load() is None
