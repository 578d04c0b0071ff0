class MedReminderError(Exception):
    """Base class for errors raised by the reminder engine."""


class ScheduleConfigError(MedReminderError, ValueError):
    """A schedule whose parameters cannot produce reminders (zero step, unknown type, ...)."""


class RecordParseError(MedReminderError, ValueError):
    """A persisted record whose required fields cannot be parsed."""
