import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytz

from medreminder.config import ENGINE_CONFIG
from medreminder.errors import ScheduleConfigError
from medreminder.models.medication import Medication, ReminderInstance
from medreminder.models.progress import TodayScheduleItem
from medreminder.models.schedule import (
    AsNeeded,
    CustomTimes,
    DailyWindow,
    FixedDailyTimes,
    Interval,
    ScheduleDefinition,
)
from medreminder.utils.calendar_math import (
    clip_range,
    combine,
    day_bounds,
    days_between,
    start_of_day,
)

logger = logging.getLogger(__name__)

ScheduleEntry = Tuple[Medication, Optional[ScheduleDefinition], Sequence[ReminderInstance]]


def interval_step(schedule: Interval) -> timedelta:
    """Validated step of an interval schedule; raises ScheduleConfigError if it cannot advance."""
    if schedule.every_hours < 0 or schedule.every_minutes < 0:
        logger.error("Negative interval %sh %sm", schedule.every_hours, schedule.every_minutes)
        raise ScheduleConfigError(
            f"Interval must not be negative (got {schedule.every_hours}h {schedule.every_minutes}m)"
        )
    step = schedule.step
    if step <= timedelta(0):
        logger.error("Zero-length interval step")
        raise ScheduleConfigError("Interval step must be longer than zero")
    return step


def validate_schedule(schedule: ScheduleDefinition) -> ScheduleDefinition:
    """Reject schedules that can never produce a sensible reminder list."""
    if isinstance(schedule, Interval):
        interval_step(schedule)
        window = schedule.daily_window
        if window is not None and window.is_inverted:
            raise ScheduleConfigError(f"Daily window starts at {window.start} but ends at {window.end}")
    elif isinstance(schedule, (FixedDailyTimes, CustomTimes)):
        if not schedule.times:
            raise ScheduleConfigError("Schedule has no reminder times")
    elif not isinstance(schedule, AsNeeded):
        raise ScheduleConfigError(f"Unsupported schedule definition: {schedule!r}")
    return schedule


def _continuous_instants(step: timedelta, anchor: datetime, day: date) -> List[datetime]:
    day_start, day_end = day_bounds(day)
    if anchor >= day_end:
        return []
    current = anchor
    if anchor < day_start:
        # ceil((day_start - anchor) / step) without walking the history
        current = anchor + step * -((anchor - day_start) // step)
    out = []
    while current < day_end:
        out.append(current)
        current += step
    return out


def _windowed_instants(window: DailyWindow, step: timedelta, day: date,
                       last_taken: Optional[datetime] = None) -> List[datetime]:
    current = combine(day, window.start)
    bound = combine(day, window.end) if window.end is not None else day_bounds(day)[1]
    if current >= bound:
        logger.debug("Daily window %s-%s is empty on %s", window.start, window.end, day)
        return []
    if last_taken is not None and last_taken.date() == day:
        resumed = last_taken + step
        if resumed >= bound:
            return []
        current = max(current, resumed)
    out = []
    while current < bound:
        out.append(current)
        current += step
    return out


def expand(schedule: ScheduleDefinition, day: date, anchor: Optional[datetime] = None,
           last_taken: Optional[datetime] = None) -> List[datetime]:
    """Reminder instants that ``schedule`` contributes to ``day``, sorted ascending.

    ``anchor`` is the start of the cadence for continuous intervals and is
    ignored by every other shape. ``last_taken`` lets a daily-bounded interval
    resume one step after a dose acknowledged earlier the same day.
    """
    if isinstance(schedule, FixedDailyTimes):
        if not schedule.applies_on(day.isoweekday()):
            return []
        return [combine(day, t) for t in schedule.times]
    if isinstance(schedule, CustomTimes):
        return [combine(day, t) for t in schedule.times]
    if isinstance(schedule, AsNeeded):
        return []
    if isinstance(schedule, Interval):
        step = interval_step(schedule)
        if schedule.is_continuous:
            if anchor is None:
                raise ScheduleConfigError("A continuous interval needs an anchor instant")
            return _continuous_instants(step, anchor, day)
        return _windowed_instants(schedule.daily_window, step, day, last_taken)
    raise ScheduleConfigError(f"Unsupported schedule definition: {schedule!r}")


def generate(medication: Medication, schedule: Optional[ScheduleDefinition],
             period_start: date, period_end: date,
             last_taken: Optional[datetime] = None) -> Dict[date, List[datetime]]:
    """Map every active day of [period_start, period_end] to its reminder instants.

    The range is clipped to the medication's validity window; each remaining
    day gets an entry, empty or not.
    """
    if schedule is None:
        logger.debug("Medication %s has no active schedule", medication.id)
        return {}

    anchor = start_of_day(medication.start_date)
    if isinstance(schedule, Interval):
        step = interval_step(schedule)
        if schedule.is_continuous and last_taken is not None:
            anchor = max(last_taken + step, anchor)
        elif schedule.daily_window is not None and schedule.daily_window.is_inverted:
            logger.warning("Medication %s: daily window %s-%s never opens",
                           medication.id, schedule.daily_window.start, schedule.daily_window.end)

    if not medication.has_valid_window:
        logger.warning("Medication %s ends (%s) before it starts (%s); no valid days",
                       medication.id, medication.end_date, medication.start_date)
        return {}

    window = clip_range(period_start, period_end, medication.start_date, medication.end_date)
    if window is None:
        logger.debug("Period %s..%s is outside medication %s validity", period_start, period_end, medication.id)
        return {}

    result = {day: expand(schedule, day, anchor, last_taken) for day in days_between(*window)}
    logger.debug("Generated %d reminders over %d days for medication %s",
                 sum(len(v) for v in result.values()), len(result), medication.id)
    return result


def local_now(tz: Optional[str] = None) -> datetime:
    """Wall-clock time in the patient's timezone, as a naive local date-time."""
    zone = pytz.timezone(tz or ENGINE_CONFIG["timezone"])
    return datetime.now(zone).replace(tzinfo=None)


def build_med_schedule(entries: Iterable[ScheduleEntry], now: Optional[datetime] = None,
                       tz: Optional[str] = None) -> List[TodayScheduleItem]:
    """Return today's schedule of reminders across medications"""
    now = now or local_now(tz)
    today = now.date()
    out = []
    for medication, schedule, reminders in entries:
        by_time = {r.scheduled_at: r for r in reminders or [] if r.medication_id == medication.id}
        for when in generate(medication, schedule, today, today).get(today, []):
            reminder = by_time.get(when)
            out.append(TodayScheduleItem(
                medication_id=medication.id,
                medication_name=medication.name,
                scheduled_at=when,
                is_past=when < now,
                is_taken=bool(reminder and reminder.is_taken),
                reminder_id=reminder.id if reminder else None,
            ))
    out.sort(key=lambda item: (item.scheduled_at, item.medication_name))
    return out
