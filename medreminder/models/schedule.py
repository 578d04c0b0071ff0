from __future__ import annotations
from dataclasses import dataclass
from datetime import time, timedelta
from typing import FrozenSet, Iterable, Optional, Tuple, Union

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _normalize_times(times: Iterable[time]) -> Tuple[time, ...]:
    return tuple(sorted(set(times)))


@dataclass(frozen=True)
class FixedDailyTimes:
    """Clock times repeated every day, optionally only on some ISO weekdays (1=Mon..7=Sun)."""
    times: Tuple[time, ...]
    weekday_filter: Optional[FrozenSet[int]] = None

    def __post_init__(self):
        object.__setattr__(self, "times", _normalize_times(self.times))
        weekdays = frozenset(self.weekday_filter) if self.weekday_filter else None
        object.__setattr__(self, "weekday_filter", weekdays)

    def applies_on(self, isoweekday: int) -> bool:
        return self.weekday_filter is None or isoweekday in self.weekday_filter


@dataclass(frozen=True)
class CustomTimes:
    times: Tuple[time, ...]

    def __post_init__(self):
        object.__setattr__(self, "times", _normalize_times(self.times))


@dataclass(frozen=True)
class DailyWindow:
    start: time
    end: Optional[time] = None

    @property
    def is_inverted(self) -> bool:
        return self.end is not None and self.start >= self.end


@dataclass(frozen=True)
class Interval:
    """Dose every ``every_hours``h ``every_minutes``m.

    Without a daily window the cadence runs continuously from the medication
    start; with one it restarts at ``daily_window.start`` each day.
    """
    every_hours: int = 0
    every_minutes: int = 0
    daily_window: Optional[DailyWindow] = None

    @property
    def step(self) -> timedelta:
        return timedelta(hours=self.every_hours, minutes=self.every_minutes)

    @property
    def is_continuous(self) -> bool:
        return self.daily_window is None


@dataclass(frozen=True)
class AsNeeded:
    """Taken on demand; never produces reminders."""


ScheduleDefinition = Union[FixedDailyTimes, CustomTimes, Interval, AsNeeded]


def _fmt(t: Optional[time]) -> str:
    return t.strftime("%H:%M") if t is not None else "N/A"


def describe_schedule(schedule: ScheduleDefinition) -> str:
    """Human readable one-liner for a schedule."""
    if isinstance(schedule, FixedDailyTimes):
        times = ", ".join(_fmt(t) for t in schedule.times) or "N/A"
        if schedule.weekday_filter:
            days = ", ".join(WEEKDAY_NAMES[d - 1] for d in sorted(schedule.weekday_filter))
            return f"Weekly on {days} at {times}"
        return f"Daily at {times}"
    if isinstance(schedule, CustomTimes):
        times = ", ".join(_fmt(t) for t in schedule.times) or "N/A"
        return f"Custom alarms at {times}"
    if isinstance(schedule, Interval):
        every = f"Every {schedule.every_hours}h {schedule.every_minutes}m"
        if schedule.is_continuous:
            return f"{every} (continuous)"
        window = schedule.daily_window
        if window.end is None:
            return f"{every} from {_fmt(window.start)}"
        return f"{every} from {_fmt(window.start)} to {_fmt(window.end)}"
    if isinstance(schedule, AsNeeded):
        return "As needed"
    raise TypeError(f"Unknown schedule definition: {schedule!r}")
