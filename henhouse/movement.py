"""
Positions and timed straight-line movement.
NO UI DEPENDENCIES.
"""
import math
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class Position:
    """A point in world units."""
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def of(cls, point: Sequence[float]) -> 'Position':
        """Build from any (x, y) pair."""
        return cls(float(point[0]), float(point[1]))

    def distance_to(self, other: 'Position') -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def as_tuple(self) -> tuple:
        return (self.x, self.y)


class Mover:
    """
    Walks a position toward a target at a fixed base speed.

    The effective speed is base speed times the ledger's speed rate, so a
    trip takes distance / (speed * speed_rate) seconds.
    """

    def __init__(self, position: Position, speed: float):
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        self.position = position
        self.speed = speed
        self.target: Optional[Position] = None

    @property
    def is_moving(self) -> bool:
        return self.target is not None

    def move_to(self, target: Position) -> None:
        """Start (or redirect) a walk toward target."""
        self.target = target

    def stop(self) -> None:
        """Abandon the current walk where it is."""
        self.target = None

    def step(self, dt: float, speed_rate: float = 1.0) -> bool:
        """
        Advance toward the target.
        Returns True on the tick the target is reached.
        """
        if self.target is None:
            return False

        remaining = self.position.distance_to(self.target)
        travel = self.speed * speed_rate * dt

        if travel >= remaining:
            self.position = self.target
            self.target = None
            return True

        frac = travel / remaining
        self.position = Position(
            self.position.x + (self.target.x - self.position.x) * frac,
            self.position.y + (self.target.y - self.position.y) * frac,
        )
        return False

    def __repr__(self) -> str:
        return f"Mover(at={self.position.as_tuple()}, target={self.target})"
