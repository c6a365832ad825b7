from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from parkwise.errors import CrossDayWindow, InvalidWindow, PastWindow


@dataclass(frozen=True)
class Window:
    """Half-open interval [start, end)."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def intersects(self, other: "Window") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


def overlaps(existing_windows: Iterable[Window], candidate: Window) -> bool:
    return any(candidate.intersects(existing) for existing in existing_windows)


def validate_window(window: Window, now: datetime) -> None:
    if window.end <= window.start:
        raise InvalidWindow(
            "Reservation must end after it starts",
            start=window.start.isoformat(),
            end=window.end.isoformat(),
        )
    if window.start.date() != window.end.date():
        raise CrossDayWindow(
            "Reservation must start and end on the same day",
            start=window.start.isoformat(),
            end=window.end.isoformat(),
        )
    if window.start < now:
        raise PastWindow(
            "Reservation cannot start in the past",
            start=window.start.isoformat(),
            now=now.isoformat(),
        )
