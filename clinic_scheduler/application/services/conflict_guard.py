from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from ...exceptions import SlotConflict, ValidationError
from .appointment_lifecycle import is_active
from .slot_calendar import ensure_aware, overlaps


@dataclass
class BookingConflictGuard:
    """Checks a proposed interval against the live appointment set.

    Call it inside the doctor's lock right before commit; a slot list computed
    earlier may already be stale.
    """

    repo: AppointmentsRepository

    def find_conflict(
        self,
        doctor_id: int,
        proposed_start: datetime,
        duration: timedelta,
        exclude_appointment_id: Optional[int] = None,
    ) -> Optional[AppointmentDto]:
        ensure_aware(proposed_start, "proposed_start")
        if duration <= timedelta(0):
            raise ValidationError("Appointment duration must be positive")
        proposed_end = proposed_start + duration
        # neighbouring days are included so intervals spanning midnight are still caught
        candidates = self.repo.list_for_doctor(
            doctor_id,
            (proposed_start - timedelta(days=1)).date(),
            (proposed_end + timedelta(days=1)).date(),
        )
        for appt in candidates:
            if appt.id == exclude_appointment_id or not is_active(appt.status):
                continue
            if overlaps(appt.scheduled_at, appt.ends_at, proposed_start, proposed_end):
                return appt
        return None

    def validate(
        self,
        doctor_id: int,
        proposed_start: datetime,
        duration: timedelta,
        exclude_appointment_id: Optional[int] = None,
    ) -> None:
        conflict = self.find_conflict(doctor_id, proposed_start, duration, exclude_appointment_id)
        if conflict is not None:
            raise SlotConflict(doctor_id, conflict.scheduled_at, conflict.ends_at, conflict.id)
