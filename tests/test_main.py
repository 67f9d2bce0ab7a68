"""
Tests for the headless runner.
"""
import json

import pytest

from henhouse.config import get_settings
from henhouse.game import Game
from henhouse.main import AutoPlayer, main


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.setenv("HENHOUSE_AUTOSAVE_INTERVAL_SECONDS", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAutoPlayer:
    """Tests for the scripted player."""

    def test_autoplay_earns_coins(self, game):
        """Scripted clicks run the cycle and sell eggs."""
        player = AutoPlayer(game)
        for _ in range(300):
            player.step()
            game.update(0.1)

        assert game.get_stats().eggs_sold > 0


class TestMain:
    """Tests for the command-line entry point."""

    def test_run_and_save(self, tmp_path, capsys):
        """A run writes a snapshot and prints a summary."""
        save = tmp_path / "save.json"

        assert main(["--seconds", "10", "--autoplay", "--save", str(save)]) == 0

        data = json.loads(save.read_text())
        assert data["coins"] > 50
        assert "coins=" in capsys.readouterr().out

    def test_resume_from_save(self, tmp_path):
        """A second run continues from the first run's coins."""
        save = tmp_path / "save.json"
        save.write_text(json.dumps({"corn": 0, "eggs": 0, "coins": 400, "agentCount": 1}))

        main(["--seconds", "1", "--save", str(save)])

        data = json.loads(save.read_text())
        assert data["agentCount"] == 1
        assert data["coins"] >= 400

    def test_reset_flag(self, tmp_path):
        """--reset ignores the old save."""
        save = tmp_path / "save.json"
        save.write_text(json.dumps({"corn": 0, "eggs": 0, "coins": 999}))

        main(["--seconds", "0.5", "--reset", "--save", str(save)])

        assert json.loads(save.read_text())["coins"] == 50

    def test_hire_flag(self, tmp_path):
        """--hire buys helpers when affordable."""
        save = tmp_path / "save.json"
        save.write_text(json.dumps({"corn": 0, "eggs": 0, "coins": 250}))

        main(["--seconds", "0.5", "--hire", "3", "--save", str(save)])

        assert json.loads(save.read_text())["agentCount"] == 2

    def test_bad_dt(self, tmp_path):
        """A non-positive tick is refused."""
        assert main(["--dt", "0", "--save", str(tmp_path / "s.json")]) == 2


def test_autoplayer_uses_game_nodes():
    """The scripted player starts at the field when it has nothing."""
    game = Game(seed=1, tutorial=False)
    player = AutoPlayer(game)
    player.step()
    assert game.dispatcher.pending is game.field
