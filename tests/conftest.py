from datetime import date, datetime, time

import pytest

from medreminder.models.medication import Medication, ReminderInstance


@pytest.fixture
def today():
    # a Wednesday
    return date(2024, 1, 10)


@pytest.fixture
def make_medication():
    def _make(start=date(2024, 1, 1), end=None, med_id=1, name="Metformin"):
        return Medication(id=med_id, name=name, start_date=start, end_date=end, dosage="500 mg")
    return _make


@pytest.fixture
def make_reminder():
    counter = {"id": 0}

    def _make(scheduled_at, is_taken=False, taken_at=None, medication_id=1):
        counter["id"] += 1
        return ReminderInstance(
            id=counter["id"],
            medication_id=medication_id,
            scheduled_at=scheduled_at,
            is_taken=is_taken,
            taken_at=taken_at,
        )
    return _make


def at(day, hour, minute=0):
    return datetime.combine(day, time(hour, minute))
