"""Appointment status machine.

Availability and the waiting queue are both derived from ``status``, so moving
an appointment to COMPLETED, CANCELLED or NO_SHOW releases its slot and drops
it from the queue without any further bookkeeping.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ...exceptions import IllegalTransition, ValidationError


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class AppointmentType(str, Enum):
    CONSULTATION = "CONSULTATION"
    FOLLOW_UP = "FOLLOW_UP"
    EMERGENCY = "EMERGENCY"
    WALK_IN = "WALK_IN"


class BookingChannel(str, Enum):
    SELF_SERVICE = "SELF_SERVICE"
    STAFF = "STAFF"
    WALK_IN = "WALK_IN"


TERMINAL_STATUSES = frozenset({
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
})

# Statuses that still occupy their interval for conflict purposes
ACTIVE_STATUSES = frozenset(s for s in AppointmentStatus if s not in TERMINAL_STATUSES)

# Statuses that make up the "call next" waiting view
WAITING_STATUSES = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
})

# target -> statuses it may be reached from
TRANSITIONS = {
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED}),
    AppointmentStatus.IN_PROGRESS: WAITING_STATUSES,
    AppointmentStatus.COMPLETED: frozenset({
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CONFIRMED,
    }),
    AppointmentStatus.CANCELLED: WAITING_STATUSES,
    AppointmentStatus.NO_SHOW: frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED}),
}


def is_active(status: str) -> bool:
    return AppointmentStatus(status) in ACTIVE_STATUSES


def is_waiting(status: str) -> bool:
    return AppointmentStatus(status) in WAITING_STATUSES


def initial_status(channel: BookingChannel) -> AppointmentStatus:
    """Self-service bookings wait for staff confirmation; staff and walk-in bookings do not."""
    if BookingChannel(channel) == BookingChannel.SELF_SERVICE:
        return AppointmentStatus.PENDING
    return AppointmentStatus.SCHEDULED


def can_transition(current: str, target: str) -> bool:
    return AppointmentStatus(current) in TRANSITIONS.get(AppointmentStatus(target), frozenset())


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise IllegalTransition(AppointmentStatus(current).value, AppointmentStatus(target).value)


def apply_transition(current: str, target: str, now: datetime, cancel_reason: Optional[str] = None) -> Dict[str, Any]:
    """Validate ``current -> target`` and return the field changes to persist."""
    ensure_transition(current, target)
    target = AppointmentStatus(target)
    changes: Dict[str, Any] = {"status": target.value, "updated_at": now}
    if target == AppointmentStatus.CANCELLED:
        if cancel_reason is None or not cancel_reason.strip():
            raise ValidationError("Cancel reason is required")
        changes["cancel_reason"] = cancel_reason.strip()
        changes["cancelled_at"] = now
    return changes
