from datetime import date, datetime, time, timezone

import pytest

from medreminder.errors import RecordParseError, ScheduleConfigError
from medreminder.models.schedule import AsNeeded, CustomTimes, DailyWindow, FixedDailyTimes, Interval
from medreminder.utils.parsers import (
    medication_from_record,
    parse_date,
    parse_datetime,
    parse_taken_at,
    parse_time,
    parse_weekdays,
    reminder_from_record,
    schedule_from_record,
)


def test_parse_date_iso_and_legacy():
    assert parse_date("2024-01-10") == date(2024, 1, 10)
    assert parse_date("10/01/2024") == date(2024, 1, 10)
    assert parse_date(datetime(2024, 1, 10, 8)) == date(2024, 1, 10)
    with pytest.raises(RecordParseError):
        parse_date("Jan 10th")


def test_parse_time():
    assert parse_time("08:30") == time(8, 30)
    assert parse_time("23:59:59.999999") == time.max
    with pytest.raises(RecordParseError):
        parse_time("25:00")


def test_parse_taken_at_is_lenient():
    assert parse_taken_at("2024-01-10T09:05:00") == datetime(2024, 1, 10, 9, 5)
    assert parse_taken_at(None) is None
    assert parse_taken_at("  ") is None
    assert parse_taken_at("garbage") is None
    assert parse_taken_at("2024-01-10T09:05:00Z") is None
    assert parse_taken_at("2024-01-10T09:05:00+02:00") is None
    assert parse_taken_at(datetime(2024, 1, 10, 9, 5, tzinfo=timezone.utc)) is None


def test_parse_datetime_rejects_offsets():
    assert parse_datetime("2024-01-10T09:05") == datetime(2024, 1, 10, 9, 5)
    with pytest.raises(RecordParseError):
        parse_datetime("2024-01-10T09:05:00Z")
    with pytest.raises(RecordParseError):
        parse_datetime(datetime(2024, 1, 10, 9, 5, tzinfo=timezone.utc))


def test_parse_weekdays():
    assert parse_weekdays("1,3,5") == frozenset({1, 3, 5})
    assert parse_weekdays([7, 1]) == frozenset({1, 7})
    assert parse_weekdays(["MONDAY", "sun"]) == frozenset({1, 7})
    assert parse_weekdays("") is None
    with pytest.raises(ScheduleConfigError):
        parse_weekdays("8")


def test_daily_and_weekly_records_become_fixed_times():
    daily = schedule_from_record({"schedule_type": "DAILY", "specific_times": "21:00,09:00"})
    assert daily == FixedDailyTimes([time(9), time(21)])
    weekly = schedule_from_record({
        "schedule_type": "WEEKLY", "specific_times": ["08:00"], "days_of_week": "1,4",
        "interval_hours": 3,
    })
    assert weekly == FixedDailyTimes([time(8)], frozenset({1, 4}))


def test_custom_alarms_record():
    schedule = schedule_from_record({"schedule_type": "custom_alarms", "specific_times": "10:00,14:00,18:00"})
    assert isinstance(schedule, CustomTimes)
    assert len(schedule.times) == 3


def test_interval_records():
    continuous = schedule_from_record({"schedule_type": "INTERVAL", "interval_hours": 7})
    assert continuous == Interval(7, 0)
    assert continuous.is_continuous

    bounded = schedule_from_record({
        "schedule_type": "INTERVAL", "interval_hours": "4", "interval_minutes": None,
        "interval_start_time": "08:00", "interval_end_time": "",
    })
    assert bounded == Interval(4, 0, DailyWindow(time(8)))


def test_as_needed_record():
    assert schedule_from_record({"schedule_type": "AS_NEEDED"}) == AsNeeded()


@pytest.mark.parametrize("record", [
    {"schedule_type": "INTERVAL", "interval_hours": 0, "interval_minutes": 0},
    {"schedule_type": "INTERVAL", "interval_hours": 1, "interval_start_time": "22:00", "interval_end_time": "01:00"},
    {"schedule_type": "INTERVAL", "interval_hours": "every"},
    {"schedule_type": "DAILY", "specific_times": ""},
    {"schedule_type": "DAILY", "specific_times": "nine"},
    {"schedule_type": "MONTHLY"},
    {},
])
def test_bad_schedule_records(record):
    with pytest.raises(ScheduleConfigError):
        schedule_from_record(record)


def test_medication_record():
    medication = medication_from_record({
        "id": 3, "name": "Ibuprofen", "start_date": "01/01/2024", "end_date": "2024-01-31",
        "package_size": "20",
    })
    assert medication.start_date == date(2024, 1, 1)
    assert medication.end_date == date(2024, 1, 31)
    assert medication.package_size == 20

    open_ended = medication_from_record({"id": 4, "name": "B12", "start_date": "2024-01-01", "end_date": None})
    assert open_ended.end_date is None

    with pytest.raises(RecordParseError):
        medication_from_record({"id": 5, "name": "No start"})


def test_reminder_record_keeps_unparseable_taken_at():
    reminder = reminder_from_record({
        "id": 9, "medication_id": 3, "reminder_time": "2024-01-10T09:00:00",
        "is_taken": 1, "taken_at": "10/01/2024 09:03",
    })
    assert reminder.scheduled_at == datetime(2024, 1, 10, 9)
    assert reminder.is_taken
    assert reminder.taken_at == "10/01/2024 09:03"

    parsed = reminder_from_record({
        "id": 10, "medication_id": 3, "scheduled_at": "2024-01-10T21:00:00",
        "is_taken": "false", "taken_at": None,
    })
    assert not parsed.is_taken
    assert parsed.taken_at is None
