from datetime import date, datetime, time, timedelta
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
import pytz

from .....db.models import Appointment, Doctor, DoctorShift, QueueCounter
from .....exceptions import NotFound, SlotConflict
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    DoctorDto,
    NewAppointment,
    WorkingWindow,
)

_DATETIME_FIELDS = ("scheduled_at", "cancelled_at", "created_at", "updated_at")


class SqlAppointmentsRepository(AppointmentsRepository):
    """Appointment store; timestamps are persisted in UTC and read back in the clinic zone."""

    def __init__(self, session: Session, tz, default_hours: Optional[WorkingWindow] = None):
        self.session = session
        self.tz = tz
        # used for doctors without their own work_start/work_end
        self.default_hours = default_hours or WorkingWindow(start=time(8, 0), end=time(17, 0))

    def _to_db(self, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return value.astimezone(pytz.utc)

    def _from_db(self, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            # SQLite returns the stored UTC value without its offset
            value = pytz.utc.localize(value)
        return value.astimezone(self.tz)

    def _local_day(self, value: datetime) -> date:
        return value.astimezone(self.tz).date()

    def _appt_to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            doctor_id=a.doctor_id,
            patient_id=a.patient_id,
            scheduled_at=self._from_db(a.scheduled_at),
            duration_minutes=a.duration_minutes,
            type=a.type,
            status=a.status,
            queue_number=a.queue_number,
            priority=a.priority,
            priority_reason=a.priority_reason,
            reason=a.reason,
            notes=a.notes,
            cancel_reason=a.cancel_reason,
            cancelled_at=self._from_db(a.cancelled_at),
            created_at=self._from_db(a.created_at),
            updated_at=self._from_db(a.updated_at),
        )

    def _commit(self, a: Appointment) -> Appointment:
        doctor_id, start, minutes = a.doctor_id, a.scheduled_at, a.duration_minutes
        self.session.add(a)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            local_start = self._from_db(start)
            raise SlotConflict(doctor_id, local_start, local_start + timedelta(minutes=minutes))
        self.session.refresh(a)
        return a

    def get_doctor(self, doctor_id: int) -> Optional[DoctorDto]:
        d = self.session.exec(select(Doctor).where(Doctor.id == doctor_id)).first()
        if not d:
            return None
        return DoctorDto(
            id=d.id,
            name=d.name,
            is_active=bool(d.is_active),
            work_start=d.work_start or self.default_hours.start,
            work_end=d.work_end or self.default_hours.end,
        )

    def get_shifts(self, doctor_id: int, day: date) -> Optional[List[WorkingWindow]]:
        rows = self.session.exec(
            select(DoctorShift)
            .where(DoctorShift.doctor_id == doctor_id)
            .where(DoctorShift.work_date == day)
            .order_by(DoctorShift.start_time)
        ).all()
        if not rows:
            return None
        return [WorkingWindow(start=s.start_time, end=s.end_time) for s in rows if s.status != "CANCELLED"]

    def list_for_doctor(self, doctor_id: int, start_day: date, end_day: date) -> List[AppointmentDto]:
        rows = self.session.exec(
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_date >= start_day)
            .where(Appointment.appointment_date <= end_day)
            .order_by(Appointment.scheduled_at, Appointment.queue_number)
        ).all()
        return [self._appt_to_dto(r) for r in rows]

    def list_in_progress(self, doctor_id: int) -> List[AppointmentDto]:
        rows = self.session.exec(
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.status == "IN_PROGRESS")
            .order_by(Appointment.scheduled_at)
        ).all()
        return [self._appt_to_dto(r) for r in rows]

    def next_queue_number(self, doctor_id: int, day: date) -> int:
        counter = self.session.get(QueueCounter, (doctor_id, day))
        if counter is None:
            # days booked before the counter row existed start after their highest number
            current = self.session.exec(
                select(func.max(Appointment.queue_number))
                .where(Appointment.doctor_id == doctor_id)
                .where(Appointment.appointment_date == day)
            ).first()
            counter = QueueCounter(doctor_id=doctor_id, work_date=day, last_number=int(current or 0))
        number = counter.last_number + 1
        counter.last_number = number
        self.session.add(counter)
        self.session.commit()
        return number

    def create(self, appt: NewAppointment) -> AppointmentDto:
        a = Appointment(
            doctor_id=appt.doctor_id,
            patient_id=appt.patient_id,
            scheduled_at=self._to_db(appt.scheduled_at),
            appointment_date=self._local_day(appt.scheduled_at),
            duration_minutes=appt.duration_minutes,
            type=appt.type,
            status=appt.status,
            queue_number=appt.queue_number,
            priority=appt.priority,
            priority_reason=appt.priority_reason,
            reason=appt.reason,
            notes=appt.notes,
            created_at=self._to_db(appt.created_at),
            updated_at=self._to_db(appt.created_at),
        )
        return self._appt_to_dto(self._commit(a))

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        return self._appt_to_dto(a) if a else None

    def update(self, appointment_id: int, **changes) -> AppointmentDto:
        a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        if not a:
            raise NotFound("Appointment not found")
        for key, value in changes.items():
            if key in _DATETIME_FIELDS:
                value = self._to_db(value)
            setattr(a, key, value)
        if "scheduled_at" in changes:
            a.appointment_date = self._local_day(changes["scheduled_at"])
        return self._appt_to_dto(self._commit(a))
