from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    if minutes < 0 or minutes >= 24 * 60:
        raise ValueError(f"{minutes} minutes is outside a single day")
    return time(hour=minutes // 60, minute=minutes % 60)


def add_minutes(value: time, minutes: int) -> time:
    """Add minutes to a time-of-day without wrapping past midnight."""
    return minutes_to_time(time_to_minutes(value) + minutes)


def parse_hhmm(value: str) -> time:
    """Parse 'HH:MM' (24h) into a time. Raises ValueError on bad input."""
    parsed = datetime.strptime(value.strip(), "%H:%M")
    return parsed.time()


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def ensure_wall_minute(value: time) -> time:
    """Reject times that are not a naive whole minute of the business day."""
    if value.tzinfo is not None:
        raise ValueError(f"{value.isoformat()} must not carry a UTC offset")
    if value.second or value.microsecond:
        raise ValueError(f"{value.isoformat()} must fall on a whole minute")
    return value


@dataclass(frozen=True)
class TimeWindow:
    """Half-open [start, end) interval on a single calendar date."""

    date: date
    start: time
    end: time

    def __post_init__(self) -> None:
        ensure_wall_minute(self.start)
        ensure_wall_minute(self.end)
        if self.start >= self.end:
            raise ValueError(
                f"window start {format_hhmm(self.start)} must be before end {format_hhmm(self.end)}"
            )

    @classmethod
    def starting_at(cls, on: date, start: time, duration_minutes: int) -> TimeWindow:
        return cls(date=on, start=start, end=add_minutes(start, duration_minutes))

    @property
    def duration_minutes(self) -> int:
        return time_to_minutes(self.end) - time_to_minutes(self.start)

    def overlaps(self, other: TimeWindow) -> bool:
        if self.date != other.date:
            return False
        return self.start < other.end and other.start < self.end

    def starts_at_datetime(self) -> datetime:
        return datetime.combine(self.date, self.start)

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {format_hhmm(self.start)}-{format_hhmm(self.end)}"
