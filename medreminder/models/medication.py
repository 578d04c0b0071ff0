from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union


@dataclass
class Medication:
    id: int
    name: str
    start_date: date
    end_date: Optional[date] = None
    dosage: str = ""
    package_size: int = 0
    remaining_doses: int = 0

    @property
    def has_valid_window(self) -> bool:
        return self.end_date is None or self.start_date <= self.end_date


@dataclass
class ReminderInstance:
    """A materialized reminder row.

    ``taken_at`` is normally a datetime; records loaded from storage may keep
    the raw text when it did not parse, so reconciliation can report it.
    """
    id: int
    medication_id: int
    scheduled_at: datetime
    is_taken: bool = False
    taken_at: Optional[Union[datetime, str]] = None
