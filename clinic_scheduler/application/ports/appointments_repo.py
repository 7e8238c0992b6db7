from dataclasses import dataclass
from typing import List, Optional
from datetime import datetime, date, time, timedelta


@dataclass
class WorkingWindow:
    start: time
    end: time


@dataclass
class DoctorDto:
    id: int
    name: str
    is_active: bool
    work_start: time = time(8, 0)
    work_end: time = time(17, 0)


@dataclass
class AppointmentDto:
    id: int
    doctor_id: int
    patient_id: int
    scheduled_at: datetime
    duration_minutes: int
    type: str
    status: str
    queue_number: int
    priority: Optional[int] = None
    priority_reason: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)


@dataclass
class NewAppointment:
    doctor_id: int
    patient_id: int
    scheduled_at: datetime
    duration_minutes: int
    type: str
    status: str
    queue_number: int
    priority: Optional[int] = None
    priority_reason: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class AppointmentsRepository:
    def get_doctor(self, doctor_id: int) -> Optional[DoctorDto]:
        ...

    def get_shifts(self, doctor_id: int, day: date) -> Optional[List[WorkingWindow]]:
        """Non-cancelled shifts for the day, or None when the doctor has no shift rows for it."""
        ...

    def list_for_doctor(self, doctor_id: int, start_day: date, end_day: date) -> List[AppointmentDto]:
        ...

    def list_in_progress(self, doctor_id: int) -> List[AppointmentDto]:
        """IN_PROGRESS appointments of the doctor on any date."""
        ...

    def next_queue_number(self, doctor_id: int, day: date) -> int:
        """Issue the next number of the doctor's day; issued numbers never come back."""
        ...

    def create(self, appt: NewAppointment) -> AppointmentDto:
        ...

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        ...

    def update(self, appointment_id: int, **changes) -> AppointmentDto:
        ...
