"""
Tests for the tutorial system.
"""
import pytest

from henhouse.events import TutorialAdvanced
from henhouse.game import Game
from henhouse.tutorial import TUTORIAL_STEPS, TutorialState, TutorialStepId


@pytest.fixture
def tutorial_game(config):
    return Game(config, seed=5, tutorial=True)


class TestTutorialState:
    """Tests for TutorialState on its own."""

    def test_initial_state(self):
        """Tutorial starts at WELCOME, not completed."""
        tutorial = TutorialState()
        assert tutorial.current_step == 0
        assert tutorial.step_id == TutorialStepId.WELCOME
        assert not tutorial.is_complete()

    def test_steps_in_order(self):
        """Steps cover one production cycle and a hire."""
        assert [s.step_id for s in TUTORIAL_STEPS] == list(TutorialStepId)

    def test_get_instruction(self):
        """Every step has HUD text."""
        tutorial = TutorialState()
        assert "Welcome" in tutorial.get_instruction()
        tutorial.mark_complete()
        assert tutorial.get_instruction() == "Tutorial complete! Good luck!"

    def test_acknowledge_only_manual_steps(self):
        """Objective steps cannot be skipped by acknowledging."""
        tutorial = TutorialState()
        assert tutorial.acknowledge()
        assert tutorial.step_id == TutorialStepId.HARVEST_CORN
        assert not tutorial.acknowledge()
        assert tutorial.step_id == TutorialStepId.HARVEST_CORN

    def test_step_number_display(self):
        """Step number is 1-indexed for display."""
        tutorial = TutorialState()
        assert tutorial.get_step_number() == 1
        assert tutorial.get_total_steps() == len(TUTORIAL_STEPS)

    def test_reset(self):
        """reset() replays from the start."""
        tutorial = TutorialState()
        tutorial.mark_complete()
        tutorial.reset()
        assert tutorial.step_id == TutorialStepId.WELCOME
        assert not tutorial.completed


class TestTutorialInGame:
    """The tutorial follows real play."""

    def test_welcome_waits_for_player(self, tutorial_game):
        """Time alone does not pass the welcome screen."""
        tutorial_game.simulate(5.0)
        assert tutorial_game.tutorial.step_id == TutorialStepId.WELCOME
        assert tutorial_game.is_tutorial_active()

    def test_full_walkthrough(self, tutorial_game):
        """Harvest, feed, collect, sell and hire complete the tutorial."""
        game = tutorial_game
        tutorial = game.tutorial
        events = []

        assert game.acknowledge_tutorial()
        assert tutorial.step_id == TutorialStepId.HARVEST_CORN

        game.tap("field")
        events += game.simulate(2.0)
        assert tutorial.step_id == TutorialStepId.FEED_CHICKEN

        game.tap("chicken")
        events += game.simulate(2.0)
        assert tutorial.step_id == TutorialStepId.SELL_EGG

        game.tap("store")
        events += game.simulate(3.0)
        assert tutorial.step_id == TutorialStepId.HIRE_HELPER

        game.ledger.add_coins(100)
        assert game.hire_agent()
        events += game.simulate(0.2)
        assert tutorial.step_id == TutorialStepId.COMPLETE

        assert game.acknowledge_tutorial()
        assert tutorial.is_complete()
        assert not game.is_tutorial_active()

        steps = [e.new_step for e in events if isinstance(e, TutorialAdvanced)]
        assert steps[-1] == TutorialStepId.COMPLETE
        assert TutorialStepId.COLLECT_EGG in steps

    def test_no_tutorial(self, game):
        """A game without a tutorial has no instruction."""
        assert game.get_tutorial_instruction() is None
        assert not game.acknowledge_tutorial()
