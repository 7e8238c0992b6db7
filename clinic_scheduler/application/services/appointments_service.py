from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, date, timedelta
from typing import Callable, Iterator, List, Optional
import logging

from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto, DoctorDto, NewAppointment, WorkingWindow
from ..ports.audit_logger import AuditLogger
from ..ports.doctor_lock import DoctorLock
from ...exceptions import AlreadyInProgress, NotFound, QueueEmpty, SlotConflict, ValidationError
from .appointment_lifecycle import (
    AppointmentStatus,
    AppointmentType,
    BookingChannel,
    apply_transition,
    initial_status,
    is_active,
    is_waiting,
)
from .conflict_guard import BookingConflictGuard
from .queue_ordering import NORMAL_RANK, QueueEntry, in_progress_for, next_for_doctor, ordered_queue
from .slot_calendar import Slot, compute_slots, ensure_aware, interval_bounds, slot_containing, with_current_slot

logger = logging.getLogger(__name__)


@dataclass
class AppointmentsService:
    """Booking, status changes and call-next for one clinic.

    Every read-modify-write runs under ``lock.hold(doctor_id, day)`` so that
    validation and commit form a single step for concurrent callers.
    """

    repo: AppointmentsRepository
    lock: DoctorLock
    audit: AuditLogger
    tz: object
    slot_minutes: int = 30
    single_in_progress: bool = True
    clock: Optional[Callable[[], datetime]] = None
    guard: BookingConflictGuard = field(init=False)

    def __post_init__(self) -> None:
        self.guard = BookingConflictGuard(self.repo)

    # ------------------------------------------------------------------ helpers

    def now(self) -> datetime:
        if self.clock is not None:
            return self.clock()
        return datetime.now(self.tz)

    def _require_doctor(self, doctor_id: int) -> DoctorDto:
        doctor = self.repo.get_doctor(doctor_id)
        if not doctor:
            raise NotFound("Doctor not found")
        return doctor

    def _require_appointment(self, appointment_id: int) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        return appt

    def _working_windows(self, doctor: DoctorDto, day: date) -> List[WorkingWindow]:
        shifts = self.repo.get_shifts(doctor.id, day)
        if shifts is None:
            return [WorkingWindow(start=doctor.work_start, end=doctor.work_end)]
        return shifts

    def _day_appointments(self, doctor_id: int, day: date) -> List[AppointmentDto]:
        return self.repo.list_for_doctor(doctor_id, day, day)

    def _local(self, value: datetime) -> datetime:
        return ensure_aware(value, "scheduled_at").astimezone(self.tz)

    def _ensure_bookable(self, doctor: DoctorDto, start: datetime, duration: timedelta) -> None:
        if not doctor.is_active:
            raise ValidationError("Doctor is not available")
        day = start.date()
        template = compute_slots(doctor.id, day, self._working_windows(doctor, day), [], self.slot_minutes, self.tz)
        if not slot_containing(template, start, duration):
            raise ValidationError(f"{start:%Y-%m-%d %H:%M} is not a bookable slot in the doctor's working hours")

    def _busy(self, doctor_id: int) -> List[AppointmentDto]:
        # any date: an entry left open yesterday still occupies the doctor
        return in_progress_for(self.repo.list_in_progress(doctor_id), doctor_id)

    def _ensure_no_one_in_progress(self, doctor_id: int) -> None:
        if not self.single_in_progress:
            return
        busy = self._busy(doctor_id)
        if busy:
            raise AlreadyInProgress(doctor_id, busy[0].id)

    @contextmanager
    def _locked(self, appointment_id: int) -> Iterator[AppointmentDto]:
        """Hold the lock of the appointment's current (doctor, day) and yield a read taken under it."""
        while True:
            seen = self._require_appointment(appointment_id)
            key = (seen.doctor_id, seen.scheduled_at.date())
            with self.lock.hold(*key):
                appt = self._require_appointment(appointment_id)
                # moved by a concurrent reschedule: take the lock of its new day instead
                if (appt.doctor_id, appt.scheduled_at.date()) == key:
                    yield appt
                    return

    def _insert(
        self,
        doctor: DoctorDto,
        patient_id: int,
        start: datetime,
        duration: timedelta,
        appointment_type: AppointmentType,
        status: AppointmentStatus,
        reason: Optional[str],
        notes: Optional[str],
        priority: Optional[int],
        priority_reason: Optional[str],
    ) -> AppointmentDto:
        # caller holds the lock for (doctor.id, start.date())
        if priority is not None and not 1 <= priority < NORMAL_RANK:
            raise ValidationError(f"Priority must be between 1 and {NORMAL_RANK - 1}")
        self._ensure_bookable(doctor, start, duration)
        self.guard.validate(doctor.id, start, duration)
        day = start.date()
        appt = self.repo.create(NewAppointment(
            doctor_id=doctor.id,
            patient_id=patient_id,
            scheduled_at=start,
            duration_minutes=int(duration.total_seconds() // 60),
            type=AppointmentType(appointment_type).value,
            status=AppointmentStatus(status).value,
            queue_number=self.repo.next_queue_number(doctor.id, day),
            priority=priority,
            priority_reason=priority_reason.upper() if priority_reason else None,
            reason=reason,
            notes=notes,
            created_at=self.now(),
        ))
        self.audit.log("appointment.created", appt.id, appt.doctor_id, None, appt.status, {
            "scheduled_at": appt.scheduled_at.isoformat(),
            "queue_number": appt.queue_number,
        })
        logger.info(f"Booked appointment {appt.id} for doctor {appt.doctor_id} at {appt.scheduled_at.isoformat()} (#{appt.queue_number})")
        return appt

    # ------------------------------------------------------------------ slots

    def list_slots(self, doctor_id: int, day: date, current_appointment_id: Optional[int] = None) -> List[Slot]:
        doctor = self._require_doctor(doctor_id)
        slots = compute_slots(
            doctor_id,
            day,
            self._working_windows(doctor, day),
            self._day_appointments(doctor_id, day),
            self.slot_minutes,
            self.tz,
        )
        if not doctor.is_active:
            return [replace(s, available=False) for s in slots]
        if current_appointment_id is not None:
            current = self._require_appointment(current_appointment_id)
            if current.doctor_id == doctor_id and is_active(current.status):
                slots = with_current_slot(slots, current.scheduled_at)
        return slots

    # ------------------------------------------------------------------ booking

    def book(
        self,
        doctor_id: int,
        patient_id: int,
        scheduled_at: datetime,
        appointment_type: AppointmentType = AppointmentType.CONSULTATION,
        channel: BookingChannel = BookingChannel.STAFF,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
        priority: Optional[int] = None,
        priority_reason: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> AppointmentDto:
        start = self._local(scheduled_at)
        if start < self.now():
            raise ValidationError("Appointment time cannot be in the past")
        duration = timedelta(minutes=duration_minutes or self.slot_minutes)
        doctor = self._require_doctor(doctor_id)
        with self.lock.hold(doctor_id, start.date()):
            return self._insert(
                doctor, patient_id, start, duration, appointment_type, initial_status(channel),
                reason, notes, priority, priority_reason,
            )

    def register_walk_in(
        self,
        doctor_id: int,
        patient_id: int,
        reason: Optional[str] = None,
        priority_reason: Optional[str] = None,
    ) -> AppointmentDto:
        """Put a walk-in patient into today's earliest free slot that has not ended yet."""
        doctor = self._require_doctor(doctor_id)
        if not doctor.is_active:
            raise ValidationError("Doctor is not available")
        now = self.now()
        today = now.date()
        with self.lock.hold(doctor_id, today):
            slots = compute_slots(
                doctor_id,
                today,
                self._working_windows(doctor, today),
                self._day_appointments(doctor_id, today),
                self.slot_minutes,
                self.tz,
            )
            free = next((s for s in slots if s.available and s.end > now), None)
            if free is None:
                raise SlotConflict(doctor_id, now, slots[-1].end if slots else now)
            return self._insert(
                doctor, patient_id, free.start, free.end - free.start, AppointmentType.WALK_IN,
                initial_status(BookingChannel.WALK_IN), reason, None, None, priority_reason,
            )

    def reschedule(
        self,
        appointment_id: int,
        scheduled_at: datetime,
        doctor_id: Optional[int] = None,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AppointmentDto:
        current = self._require_appointment(appointment_id)
        start = self._local(scheduled_at)
        target_doctor = self._require_doctor(doctor_id if doctor_id is not None else current.doctor_id)
        if start < self.now():
            raise ValidationError("Appointment time cannot be in the past")

        while True:
            keys = sorted({(current.doctor_id, current.scheduled_at.date()), (target_doctor.id, start.date())})
            with ExitStack() as stack:
                # fixed acquisition order keeps two crossing reschedules from deadlocking
                for key_doctor, key_day in keys:
                    stack.enter_context(self.lock.hold(key_doctor, key_day))
                appt = self._require_appointment(appointment_id)
                if (appt.doctor_id, appt.scheduled_at.date()) in keys:
                    return self._move(appt, target_doctor, start, reason, notes)
            current = appt

    def _move(
        self,
        appt: AppointmentDto,
        target_doctor: DoctorDto,
        start: datetime,
        reason: Optional[str],
        notes: Optional[str],
    ) -> AppointmentDto:
        # caller holds the locks of the source and target (doctor, day)
        if not is_waiting(appt.status):
            raise ValidationError(f"Cannot reschedule an appointment in status {appt.status}")
        duration = timedelta(minutes=appt.duration_minutes)
        self._ensure_bookable(target_doctor, start, duration)
        self.guard.validate(target_doctor.id, start, duration, exclude_appointment_id=appt.id)

        changes = {"scheduled_at": start, "doctor_id": target_doctor.id, "updated_at": self.now()}
        if target_doctor.id != appt.doctor_id or start.date() != appt.scheduled_at.date():
            changes["queue_number"] = self.repo.next_queue_number(target_doctor.id, start.date())
        if reason is not None:
            changes["reason"] = reason
        if notes is not None:
            changes["notes"] = notes
        updated = self.repo.update(appt.id, **changes)
        self.audit.log("appointment.rescheduled", appt.id, updated.doctor_id, appt.status, updated.status, {
            "from": appt.scheduled_at.isoformat(),
            "to": updated.scheduled_at.isoformat(),
        })
        return updated

    # ------------------------------------------------------------------ lifecycle

    def _transition(self, appointment_id: int, target: AppointmentStatus, cancel_reason: Optional[str] = None) -> AppointmentDto:
        with self._locked(appointment_id) as appt:
            now = self.now()
            changes = apply_transition(appt.status, target, now, cancel_reason)
            if target == AppointmentStatus.IN_PROGRESS:
                if appt.scheduled_at.date() != now.date():
                    raise ValidationError("Only today's appointments can be checked in")
                self._ensure_no_one_in_progress(appt.doctor_id)
            updated = self.repo.update(appt.id, **changes)
            self.audit.log(f"appointment.{target.value.lower()}", appt.id, appt.doctor_id, appt.status, updated.status,
                           {"cancel_reason": updated.cancel_reason} if updated.cancel_reason else None)
            return updated

    def get(self, appointment_id: int) -> AppointmentDto:
        return self._require_appointment(appointment_id)

    def confirm(self, appointment_id: int) -> AppointmentDto:
        return self._transition(appointment_id, AppointmentStatus.CONFIRMED)

    def check_in(self, appointment_id: int) -> AppointmentDto:
        return self._transition(appointment_id, AppointmentStatus.IN_PROGRESS)

    def complete(self, appointment_id: int) -> AppointmentDto:
        return self._transition(appointment_id, AppointmentStatus.COMPLETED)

    def cancel(self, appointment_id: int, cancel_reason: Optional[str]) -> AppointmentDto:
        return self._transition(appointment_id, AppointmentStatus.CANCELLED, cancel_reason)

    def mark_no_show(self, appointment_id: int) -> AppointmentDto:
        return self._transition(appointment_id, AppointmentStatus.NO_SHOW)

    # ------------------------------------------------------------------ queue

    def ordered_queue(self, doctor_id: int) -> List[QueueEntry]:
        self._require_doctor(doctor_id)
        today = self.now().date()
        return ordered_queue(self._day_appointments(doctor_id, today), doctor_id, today)

    def in_progress(self, doctor_id: int) -> Optional[AppointmentDto]:
        busy = self._busy(doctor_id)
        return busy[0] if busy else None

    def call_next(self, doctor_id: int) -> QueueEntry:
        """Pick the head of today's queue and move it to IN_PROGRESS in one locked step."""
        self._require_doctor(doctor_id)
        now = self.now()
        today = now.date()
        with self.lock.hold(doctor_id, today):
            self._ensure_no_one_in_progress(doctor_id)
            head = next_for_doctor(self._day_appointments(doctor_id, today), doctor_id, today)
            if head is None:
                raise QueueEmpty(doctor_id)
            changes = apply_transition(head.status, AppointmentStatus.IN_PROGRESS, now)
            self.repo.update(head.appointment_id, **changes)
            self.audit.log("queue.call_next", head.appointment_id, doctor_id, head.status,
                           AppointmentStatus.IN_PROGRESS.value, {"queue_number": head.queue_number})
            logger.info(f"Doctor {doctor_id} called appointment {head.appointment_id} (#{head.queue_number})")
            return replace(head, status=AppointmentStatus.IN_PROGRESS.value)

    # ------------------------------------------------------------------ calendar

    def list_appointments(self, doctor_id: int, reference: date, view: str = "day") -> List[AppointmentDto]:
        start_day, end_day = interval_bounds(reference, view)
        return self.repo.list_for_doctor(doctor_id, start_day, end_day)
