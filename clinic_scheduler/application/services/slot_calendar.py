"""Bookable slot computation.

Slots are never stored: every call recomputes them from the doctor's working
windows and the active appointments of that day, so they cannot drift from
the appointment set.
"""
import calendar
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from ..ports.appointments_repo import AppointmentDto, WorkingWindow
from ...exceptions import ValidationError
from .appointment_lifecycle import is_active


@dataclass(frozen=True)
class Slot:
    time: str  # HH:MM
    start: datetime
    end: datetime
    available: bool
    current: bool = False


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval intersection, so back-to-back bookings do not collide."""
    return a_start < b_end and b_start < a_end


def ensure_aware(value: datetime, field_name: str = "timestamp") -> datetime:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValidationError(f"{field_name} must be timezone-aware")
    return value


def localize(day: date, clock_time: time, tz) -> datetime:
    return tz.localize(datetime.combine(day, clock_time))


def validate_windows(windows: Sequence[WorkingWindow]) -> List[WorkingWindow]:
    ordered = sorted(windows, key=lambda w: w.start)
    for w in ordered:
        if w.end <= w.start:
            raise ValidationError(f"Working window end {w.end:%H:%M} must be after start {w.start:%H:%M}")
    for prev, nxt in zip(ordered, ordered[1:]):
        if nxt.start < prev.end:
            raise ValidationError(f"Working windows overlap at {nxt.start:%H:%M}")
    return ordered


def compute_slots(
    doctor_id: int,
    day: date,
    windows: Sequence[WorkingWindow],
    existing: Iterable[AppointmentDto],
    granularity_minutes: int,
    tz,
) -> List[Slot]:
    if granularity_minutes <= 0:
        raise ValidationError("Slot length must be a positive number of minutes")
    ordered = validate_windows(windows)
    step = timedelta(minutes=granularity_minutes)

    busy: List[Tuple[datetime, datetime]] = []
    for appt in existing:
        ensure_aware(appt.scheduled_at, "scheduled_at")
        if appt.doctor_id != doctor_id or not is_active(appt.status):
            continue
        busy.append((appt.scheduled_at, appt.ends_at))

    slots: List[Slot] = []
    for window in ordered:
        cursor = datetime.combine(day, window.start)
        window_end = datetime.combine(day, window.end)
        while cursor + step <= window_end:
            start = tz.localize(cursor)
            end = tz.localize(cursor + step)
            taken = any(overlaps(b_start, b_end, start, end) for b_start, b_end in busy)
            slots.append(Slot(time=cursor.strftime("%H:%M"), start=start, end=end, available=not taken))
            cursor += step
    return slots


def with_current_slot(slots: Sequence[Slot], current_start: Optional[datetime]) -> List[Slot]:
    """Edit overlay: the appointment being edited may keep its own slot.

    Returns new Slot objects; the computed list is left untouched.
    """
    if current_start is None:
        return list(slots)
    return [
        replace(s, available=True, current=True) if s.start == current_start else s
        for s in slots
    ]


def slot_containing(slots: Sequence[Slot], start: datetime, duration: timedelta) -> bool:
    """True when ``[start, start + duration)`` begins on a slot boundary and stays inside consecutive slots."""
    end = start + duration
    covered = start
    for s in slots:
        if s.start == covered:
            covered = s.end
            if covered >= end:
                return True
    return False


def interval_bounds(reference: date, granularity: str) -> Tuple[date, date]:
    """Inclusive ``(first_day, last_day)`` of the day, Monday-based week or month around ``reference``."""
    if granularity == "day":
        return reference, reference
    if granularity == "week":
        monday = reference - timedelta(days=reference.weekday())
        return monday, monday + timedelta(days=6)
    if granularity == "month":
        last = calendar.monthrange(reference.year, reference.month)[1]
        return reference.replace(day=1), reference.replace(day=last)
    raise ValidationError(f"Unknown calendar view: {granularity}")
