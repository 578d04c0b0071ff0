from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import List, NamedTuple, Optional

import numpy as np


@dataclass(frozen=True)
class DoseProgress:
    taken: int
    total_expected: int
    remaining: int
    fraction: float
    text: str

    @classmethod
    def of(cls, taken: int, total_expected: int) -> "DoseProgress":
        """Build progress, clamping over-logged doses so fraction stays in [0, 1]."""
        fraction = float(np.clip(taken / total_expected, 0.0, 1.0)) if total_expected > 0 else 0.0
        return cls(
            taken=taken,
            total_expected=total_expected,
            remaining=max(total_expected - taken, 0),
            fraction=fraction,
            text=f"{taken} / {total_expected}",
        )


class Bucketing(str, Enum):
    DAY = "day"
    MONTH = "month"


@dataclass(frozen=True)
class ChartBucket:
    label: str
    taken: int
    is_highlighted: bool = False
    start: Optional[date] = None
    end: Optional[date] = None
    expected: int = 0


class ChartSeries(NamedTuple):
    buckets: List[ChartBucket]
    max_scheduled: int


@dataclass(frozen=True)
class HistoryEntry:
    reminder_id: int
    medication_name: str
    taken_at: datetime

    @property
    def date_taken(self) -> date:
        return self.taken_at.date()

    @property
    def time_taken(self) -> time:
        return self.taken_at.time()


@dataclass
class TodayScheduleItem:
    medication_id: int
    medication_name: str
    scheduled_at: datetime
    is_past: bool
    is_taken: bool = False
    reminder_id: Optional[int] = None

    @property
    def status(self) -> str:
        if self.is_taken:
            return "taken"
        return "past" if self.is_past else "due"
