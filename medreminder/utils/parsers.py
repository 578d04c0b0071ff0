from typing import Any, Dict, FrozenSet, List, Optional
from datetime import date, datetime, time
import logging

from medreminder.config import PARSER_CONFIG
from medreminder.errors import RecordParseError, ScheduleConfigError
from medreminder.models.medication import Medication, ReminderInstance
from medreminder.models.schedule import (
    AsNeeded,
    CustomTimes,
    DailyWindow,
    FixedDailyTimes,
    Interval,
    ScheduleDefinition,
)
from medreminder.utils.reminders import validate_schedule

logger = logging.getLogger(__name__)

WEEKDAY_LOOKUP = {
    "mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6, "sun": 7,
}

TRUE_VALUES = {"1", "true", "yes", "y", "t"}


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _split(value) -> List[Any]:
    if _is_blank(value):
        return []
    if isinstance(value, str):
        return [p.strip() for p in value.split(PARSER_CONFIG["list_separator"]) if p.strip()]
    return list(value)


def parse_date(value) -> date:
    """ISO local date, or one of the legacy stored formats (dd/MM/yyyy)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if _is_blank(value):
        raise RecordParseError("Missing date")
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    for fmt in PARSER_CONFIG["legacy_date_formats"]:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise RecordParseError(f"Unrecognized date: {value!r}")


def parse_time(value) -> time:
    if isinstance(value, time):
        return value
    if _is_blank(value):
        raise RecordParseError("Missing time")
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError as e:
        raise RecordParseError(f"Unrecognized time: {value!r}") from e


def parse_datetime(value) -> datetime:
    """ISO local date-time; zone-naive by contract, so an offset is rejected."""
    if isinstance(value, datetime):
        parsed = value
    elif _is_blank(value):
        raise RecordParseError("Missing date-time")
    else:
        text = str(value).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise RecordParseError(f"Unrecognized date-time: {value!r}") from e
    if parsed.tzinfo is not None:
        raise RecordParseError(f"Expected a local date-time without offset: {value!r}")
    return parsed


def parse_taken_at(value) -> Optional[datetime]:
    """Lenient variant of parse_datetime for acknowledgment stamps: None instead of raising."""
    if _is_blank(value):
        return None
    try:
        return parse_datetime(value)
    except RecordParseError:
        return None


def parse_weekdays(value) -> Optional[FrozenSet[int]]:
    """ISO weekday numbers from "1,3,5", [1, 3, 5] or names like "MONDAY"/"mon"."""
    days = set()
    for item in _split(value):
        if isinstance(item, int) or str(item).isdigit():
            day = int(item)
        else:
            day = WEEKDAY_LOOKUP.get(str(item).strip().lower()[:3], 0)
        if not 1 <= day <= 7:
            raise ScheduleConfigError(f"Unknown weekday: {item!r}")
        days.add(day)
    return frozenset(days) or None


def _schedule_time(value) -> time:
    try:
        return parse_time(value)
    except RecordParseError as e:
        raise ScheduleConfigError(str(e)) from e


def _optional_schedule_time(value) -> Optional[time]:
    return None if _is_blank(value) else _schedule_time(value)


def _as_int(value, field: str) -> int:
    if _is_blank(value):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ScheduleConfigError(f"{field} must be a whole number, got {value!r}") from e


def schedule_from_record(record: Dict[str, Any]) -> ScheduleDefinition:
    """Turn a flat persisted schedule row into a schedule definition.

    Rows carry a ``schedule_type`` plus nullable fields that only matter for
    some types; everything irrelevant to the type is ignored.
    """
    kind = str(record.get("schedule_type") or "").strip().upper()
    if kind in ("DAILY", "WEEKLY"):
        times = [_schedule_time(t) for t in _split(record.get("specific_times"))]
        schedule = FixedDailyTimes(times, parse_weekdays(record.get("days_of_week")))
    elif kind == "CUSTOM_ALARMS":
        times = [_schedule_time(t) for t in _split(record.get("specific_times"))]
        schedule = CustomTimes(times)
    elif kind == "INTERVAL":
        start = _optional_schedule_time(record.get("interval_start_time"))
        end = _optional_schedule_time(record.get("interval_end_time"))
        if start is None and end is not None:
            logger.debug("Ignoring interval_end_time %s on a continuous interval", end)
        schedule = Interval(
            every_hours=_as_int(record.get("interval_hours"), "interval_hours"),
            every_minutes=_as_int(record.get("interval_minutes"), "interval_minutes"),
            daily_window=DailyWindow(start, end) if start is not None else None,
        )
    elif kind == "AS_NEEDED":
        schedule = AsNeeded()
    else:
        raise ScheduleConfigError(f"Unknown schedule type: {record.get('schedule_type')!r}")
    return validate_schedule(schedule)


def medication_from_record(record: Dict[str, Any]) -> Medication:
    if _is_blank(record.get("start_date")):
        raise RecordParseError(f"Medication {record.get('id')} has no start date")
    end = record.get("end_date")
    return Medication(
        id=record["id"],
        name=record.get("name") or "",
        start_date=parse_date(record["start_date"]),
        end_date=None if _is_blank(end) else parse_date(end),
        dosage=record.get("dosage") or "",
        package_size=int(record.get("package_size") or 0),
        remaining_doses=int(record.get("remaining_doses") or 0),
    )


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)


def reminder_from_record(record: Dict[str, Any]) -> ReminderInstance:
    """Parse a reminder row. An unparseable taken_at is kept as text for reconciliation to report."""
    scheduled = record.get("scheduled_at", record.get("reminder_time"))
    raw_taken = record.get("taken_at")
    taken_at = None
    if not _is_blank(raw_taken):
        try:
            taken_at = parse_datetime(raw_taken)
        except RecordParseError:
            taken_at = str(raw_taken)
    return ReminderInstance(
        id=record["id"],
        medication_id=record["medication_id"],
        scheduled_at=parse_datetime(scheduled),
        is_taken=_as_bool(record.get("is_taken", False)),
        taken_at=taken_at,
    )
