from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from lensbook.domain.entities.time_window import time_to_minutes


@dataclass(frozen=True)
class OperatingHours:
    day_start: time = time(9, 0)
    day_end: time = time(18, 0)
    step_minutes: int = 30

    def __post_init__(self) -> None:
        if self.day_start >= self.day_end:
            raise ValueError("day_start must be before day_end")
        if self.step_minutes <= 0:
            raise ValueError("step_minutes must be positive")

    def on_grid(self, value: time) -> bool:
        offset = time_to_minutes(value) - time_to_minutes(self.day_start)
        return offset % self.step_minutes == 0

    @property
    def length_minutes(self) -> int:
        return time_to_minutes(self.day_end) - time_to_minutes(self.day_start)
