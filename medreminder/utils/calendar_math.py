import calendar
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

import pandas as pd

ONE_DAY = timedelta(days=1)


def combine(day: date, t: time) -> datetime:
    return datetime.combine(day, t)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Half-open [midnight, next midnight) bounds of a calendar day."""
    start = start_of_day(day)
    return start, start + ONE_DAY


def within_day(moment: datetime, day: date) -> bool:
    start, end = day_bounds(day)
    return start <= moment < end


def clip_range(start: date, end: date, valid_start: date,
               valid_end: Optional[date] = None) -> Optional[Tuple[date, date]]:
    """Intersect [start, end] with the validity window; None when they do not overlap."""
    lo = max(start, valid_start)
    hi = end if valid_end is None else min(end, valid_end)
    if lo > hi:
        return None
    return lo, hi


def days_between(start: date, end: date) -> List[date]:
    """Every calendar day from start to end inclusive (empty if start > end)."""
    if start > end:
        return []
    return [ts.date() for ts in pd.date_range(start, end, freq="D")]


def week_days(day: date, first_weekday: int = 0) -> List[date]:
    """The seven days of the week containing ``day``; first_weekday uses date.weekday() numbering."""
    offset = (day.weekday() - first_weekday) % 7
    first = day - timedelta(days=offset)
    return days_between(first, first + timedelta(days=6))


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def year_bounds(year: int) -> Tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)
