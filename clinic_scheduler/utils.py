from datetime import datetime, date, time

from .exceptions import ValidationError


def now_local(tz) -> datetime:
    """Current time in the clinic zone."""
    return datetime.now(tz)


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")


def parse_clock_time(value: str) -> time:
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        raise ValidationError("Invalid time format. Use HH:MM")


def to_clinic_time(value: datetime, tz) -> datetime:
    """Interpret naive datetimes as clinic-local wall time; convert aware ones into the clinic zone."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return tz.localize(value)
    return value.astimezone(tz)
