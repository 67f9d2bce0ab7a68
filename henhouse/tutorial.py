"""
Tutorial system that walks a new player through one production cycle.
NO UI DEPENDENCIES.
"""
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional, TYPE_CHECKING

from .events import EventBus, TutorialAdvanced

if TYPE_CHECKING:
    from .game import Game

logger = logging.getLogger(__name__)


class TutorialStepId(Enum):
    WELCOME = auto()
    HARVEST_CORN = auto()
    FEED_CHICKEN = auto()
    COLLECT_EGG = auto()
    SELL_EGG = auto()
    HIRE_HELPER = auto()
    COMPLETE = auto()


@dataclass
class TutorialStep:
    """A single step in the tutorial progression."""
    step_id: TutorialStepId
    instruction: str                                  # HUD text to display
    objective: Optional[Callable[['Game'], bool]]     # None = needs acknowledge()


# ============================================================================
# TUTORIAL STEPS DEFINITION
# ============================================================================

TUTORIAL_STEPS: List[TutorialStep] = [
    TutorialStep(
        TutorialStepId.WELCOME,
        "Welcome to the farm! Tap to continue",
        objective=None,
    ),
    TutorialStep(
        TutorialStepId.HARVEST_CORN,
        "Tap the FIELD to harvest corn",
        objective=lambda g: g.get_stats().corn_harvested > 0,
    ),
    TutorialStep(
        TutorialStepId.FEED_CHICKEN,
        "Tap the CHICKEN to feed it corn",
        objective=lambda g: g.get_stats().eggs_laid > 0,
    ),
    TutorialStep(
        TutorialStepId.COLLECT_EGG,
        "Collect the egg",
        objective=lambda g: g.get_stats().eggs_collected > 0,
    ),
    TutorialStep(
        TutorialStepId.SELL_EGG,
        "Tap the STORE to sell your egg",
        objective=lambda g: g.get_stats().eggs_sold > 0,
    ),
    TutorialStep(
        TutorialStepId.HIRE_HELPER,
        "Save up and hire a HELPER",
        objective=lambda g: g.ledger.agent_count > 0,
    ),
    TutorialStep(
        TutorialStepId.COMPLETE,
        "You're ready to run the farm! Tap to finish",
        objective=None,
    ),
]


class TutorialState:
    """
    Manages tutorial progression.
    Checks objectives once per tick and advances at most one step.
    """

    def __init__(self, bus: Optional[EventBus] = None, steps: Optional[List[TutorialStep]] = None):
        self.steps: List[TutorialStep] = steps if steps is not None else TUTORIAL_STEPS
        self.current_step: int = 0
        self.completed: bool = False
        self.bus = bus

    @property
    def step_id(self) -> Optional[TutorialStepId]:
        if self.completed:
            return None
        return self.steps[self.current_step].step_id

    def check_and_advance(self, game: 'Game') -> bool:
        """
        Check if current objective is met and advance if so.
        Returns True if advanced to next step.
        """
        if self.completed:
            return False
        objective = self.steps[self.current_step].objective
        if objective is None or not objective(game):
            return False
        self._advance()
        return True

    def acknowledge(self) -> bool:
        """
        Dismiss a step that waits for the player (WELCOME, COMPLETE).
        Returns True if the tutorial moved on.
        """
        if self.completed or self.steps[self.current_step].objective is not None:
            return False
        self._advance()
        return True

    def _advance(self) -> None:
        old = self.steps[self.current_step].step_id
        self.current_step += 1
        if self.current_step >= len(self.steps):
            self.current_step = len(self.steps) - 1
            self.completed = True
            logger.info("Tutorial complete")
        new = None if self.completed else self.steps[self.current_step].step_id
        if self.bus is not None:
            self.bus.publish(TutorialAdvanced(old, new))

    def mark_complete(self) -> None:
        """Skip straight to the end (restored from a snapshot)."""
        self.current_step = len(self.steps) - 1
        self.completed = True

    def reset(self) -> None:
        self.current_step = 0
        self.completed = False

    def get_instruction(self) -> str:
        """Get the current step's instruction text."""
        if self.completed:
            return "Tutorial complete! Good luck!"
        return self.steps[self.current_step].instruction

    def is_complete(self) -> bool:
        return self.completed

    def get_step_number(self) -> int:
        """Get current step number (1-indexed for display)."""
        return min(self.current_step + 1, len(self.steps))

    def get_total_steps(self) -> int:
        return len(self.steps)
