"""
Day/night clock.
NO UI DEPENDENCIES.

Presentation reads time_of_day to tint the sky; the core only counts days.
"""
from typing import Optional

from .constants import DAY_LENGTH, DAY_START_TIME, MIN_DAY_LENGTH
from .events import EventBus, DayStarted


class DayClock:
    """
    Time of day in [0, 1): 0.0 midnight, 0.25 dawn, 0.5 noon, 0.75 dusk.
    """

    def __init__(
        self,
        cycle_duration: float = DAY_LENGTH,
        start_time: float = DAY_START_TIME,
        bus: Optional[EventBus] = None,
    ):
        self.cycle_duration = max(MIN_DAY_LENGTH, cycle_duration)
        self.time_of_day: float = min(max(start_time, 0.0), 1.0) % 1.0
        self.day: int = 1
        self.running: bool = True
        self.bus = bus

    def update(self, dt: float) -> None:
        if not self.running:
            return
        self.time_of_day += dt / self.cycle_duration
        while self.time_of_day >= 1.0:
            self.time_of_day -= 1.0
            self.day += 1
            if self.bus is not None:
                self.bus.publish(DayStarted(self.day))

    def set_time_of_day(self, value: float) -> None:
        self.time_of_day = min(max(value, 0.0), 1.0) % 1.0

    def set_cycle_duration(self, duration: float) -> None:
        self.cycle_duration = max(MIN_DAY_LENGTH, duration)

    def get_time_string(self) -> str:
        """Clock face, e.g. '06:00'."""
        hours = int(self.time_of_day * 24)
        minutes = int((self.time_of_day * 24 - hours) * 60)
        return f"{hours:02d}:{minutes:02d}"

    def is_daytime(self) -> bool:
        return 0.25 <= self.time_of_day <= 0.75

    def pause(self) -> None:
        self.running = False

    def resume(self) -> None:
        self.running = True

    def toggle(self) -> None:
        self.running = not self.running
