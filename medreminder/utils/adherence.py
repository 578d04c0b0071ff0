import logging
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from medreminder.config import CHART_CONFIG, ENGINE_CONFIG
from medreminder.models.medication import Medication, ReminderInstance
from medreminder.models.progress import (
    Bucketing,
    ChartBucket,
    ChartSeries,
    DoseProgress,
    HistoryEntry,
)
from medreminder.models.schedule import ScheduleDefinition
from medreminder.utils.calendar_math import week_days, within_day, year_bounds
from medreminder.utils.parsers import parse_taken_at
from medreminder.utils.reminders import generate

logger = logging.getLogger(__name__)

Highlight = Callable[[date], bool]


def taken_moment(record: ReminderInstance) -> Optional[datetime]:
    """When a taken record was acknowledged; None if not taken or the stamp is unusable."""
    if not record.is_taken:
        return None
    moment = parse_taken_at(record.taken_at)
    if moment is None:
        logger.warning("Reminder %s is marked taken without a usable taken_at (%r); skipped",
                       record.id, record.taken_at)
    return moment


def daily_progress(expected: Sequence[datetime], actual: Iterable[ReminderInstance],
                   day: Optional[date] = None) -> DoseProgress:
    """Taken vs. expected doses for one day.

    The day is ``day`` if given, else the date of the first expected instant,
    else each record's own scheduled date.
    """
    if day is None and expected:
        day = expected[0].date()
    taken = 0
    for record in actual:
        moment = taken_moment(record)
        if moment is None:
            continue
        if within_day(moment, day if day is not None else record.scheduled_at.date()):
            taken += 1
    return DoseProgress.of(taken, len(expected))


def _axis_floor(bucketing: Bucketing) -> int:
    if bucketing is Bucketing.MONTH:
        return CHART_CONFIG["month_axis_floor"]
    return CHART_CONFIG["day_axis_floor"]


def _label(day: date, bucketing: Bucketing) -> str:
    if bucketing is Bucketing.MONTH:
        return day.strftime(CHART_CONFIG["month_label_format"])
    return day.strftime(CHART_CONFIG["day_label_format"])


def aggregate(expected_by_day: Dict[date, List[datetime]], actual: Iterable[ReminderInstance],
              bucketing: Union[Bucketing, str] = Bucketing.DAY,
              highlight: Optional[Highlight] = None) -> ChartSeries:
    """Chart buckets of taken doses over the days of ``expected_by_day``.

    ``max_scheduled`` is the most expected doses in any one bucket, never
    below the configured axis floor.
    """
    bucketing = Bucketing(bucketing)
    floor = _axis_floor(bucketing)
    if not expected_by_day:
        return ChartSeries([], floor)

    freq = "M" if bucketing is Bucketing.MONTH else "D"
    days = sorted(expected_by_day)
    frame = pd.DataFrame({
        "day": pd.to_datetime(days),
        "expected": [len(expected_by_day[d]) for d in days],
    })
    frame["bucket"] = frame["day"].dt.to_period(freq)
    grouped = frame.groupby("bucket", sort=True).agg(
        start=("day", "min"), end=("day", "max"), expected=("expected", "sum"),
    )

    day_set = set(days)
    taken_days = []
    for record in actual:
        moment = taken_moment(record)
        if moment is not None and moment.date() in day_set:
            taken_days.append(moment.date())
    taken = pd.Series(pd.to_datetime(taken_days), dtype="datetime64[ns]").dt.to_period(freq).value_counts()

    buckets = []
    for bucket, row in grouped.iterrows():
        start = row["start"].date()
        buckets.append(ChartBucket(
            label=_label(start, bucketing),
            taken=int(taken.get(bucket, 0)),
            is_highlighted=bool(highlight(start)) if highlight else False,
            start=start,
            end=row["end"].date(),
            expected=int(row["expected"]),
        ))
    max_scheduled = int(np.maximum(grouped["expected"].max(), floor))
    return ChartSeries(buckets, max_scheduled)


def highlight_current(today: date, bucketing: Union[Bucketing, str] = Bucketing.DAY) -> Highlight:
    """Predicate marking the bucket that contains ``today``."""
    if Bucketing(bucketing) is Bucketing.MONTH:
        return lambda start: (start.year, start.month) == (today.year, today.month)
    return lambda start: start == today


def weekly_chart(medication: Medication, schedule: Optional[ScheduleDefinition],
                 actual: Iterable[ReminderInstance], day: date, today: Optional[date] = None,
                 first_weekday: Optional[int] = None) -> ChartSeries:
    """Per-day taken counts for the week containing ``day``."""
    if first_weekday is None:
        first_weekday = ENGINE_CONFIG["week_start"]
    week = week_days(day, first_weekday)
    expected = generate(medication, schedule, week[0], week[-1])
    return aggregate(expected, actual, Bucketing.DAY, highlight_current(today or day, Bucketing.DAY))


def yearly_chart(medication: Medication, schedule: Optional[ScheduleDefinition],
                 actual: Iterable[ReminderInstance], year: int,
                 today: Optional[date] = None) -> ChartSeries:
    """Per-month taken counts for ``year``."""
    start, end = year_bounds(year)
    expected = generate(medication, schedule, start, end)
    highlight = highlight_current(today, Bucketing.MONTH) if today else None
    return aggregate(expected, actual, Bucketing.MONTH, highlight)


def adherence_summary(expected_by_day: Dict[date, List[datetime]], actual: Iterable[ReminderInstance]):
    """Compute adherence percentage over a generated period"""
    scheduled = sum(len(v) for v in expected_by_day.values())
    taken = 0
    for record in actual:
        moment = taken_moment(record)
        if moment is not None and moment.date() in expected_by_day:
            taken += 1
    if not scheduled:
        return {"scheduled": 0, "taken": taken, "adherence_pct": None}
    pct = round(100.0 * min(taken, scheduled) / scheduled, 1)
    return {"scheduled": scheduled, "taken": taken, "adherence_pct": pct}


def medication_history(actual: Iterable[ReminderInstance], medication_name: str = "",
                       start: Optional[date] = None, end: Optional[date] = None,
                       ascending: bool = False) -> List[HistoryEntry]:
    """Taken doses, optionally limited to [start, end] (either side open), newest first by default."""
    out = []
    for record in actual:
        moment = taken_moment(record)
        if moment is None:
            continue
        if start is not None and moment.date() < start:
            continue
        if end is not None and moment.date() > end:
            continue
        out.append(HistoryEntry(record.id, medication_name or "Unknown Medication", moment))
    out.sort(key=lambda e: e.taken_at, reverse=not ascending)
    return out
