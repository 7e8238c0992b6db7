from dataclasses import replace
from datetime import date, datetime, time
from typing import Dict, List, Optional, Tuple
import threading
import time as _time

import pytz

from clinic_scheduler.application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    DoctorDto,
    NewAppointment,
    WorkingWindow,
)

TZ = pytz.timezone("Asia/Ho_Chi_Minh")
DAY = date(2030, 3, 4)  # a Monday


def at(hhmm: str, day: date = DAY) -> datetime:
    return TZ.localize(datetime.combine(day, datetime.strptime(hhmm, "%H:%M").time()))


def make_appt(id: int, start: str, status: str = "SCHEDULED", doctor_id: int = 1, queue_number: Optional[int] = None,
              duration: int = 30, day: date = DAY, priority: Optional[int] = None,
              priority_reason: Optional[str] = None, type: str = "CONSULTATION") -> AppointmentDto:
    return AppointmentDto(
        id=id,
        doctor_id=doctor_id,
        patient_id=100 + id,
        scheduled_at=at(start, day),
        duration_minutes=duration,
        type=type,
        status=status,
        queue_number=queue_number if queue_number is not None else id,
        priority=priority,
        priority_reason=priority_reason,
    )


class FakeApptRepo(AppointmentsRepository):
    def __init__(self, read_delay: float = 0.0):
        self._id = 1
        self._mutex = threading.Lock()
        self.appts: Dict[int, AppointmentDto] = {}
        self.doctors: Dict[int, DoctorDto] = {
            1: DoctorDto(id=1, name="Dr. An", is_active=True, work_start=time(8, 0), work_end=time(17, 0)),
            2: DoctorDto(id=2, name="Dr. Binh", is_active=True, work_start=time(8, 0), work_end=time(17, 0)),
        }
        self.shifts: Dict[Tuple[int, date], List[WorkingWindow]] = {}
        self.counters: Dict[Tuple[int, date], int] = {}
        # widens the read-then-write gap so unlocked races would show up
        self.read_delay = read_delay

    def get_doctor(self, doctor_id: int) -> Optional[DoctorDto]:
        return self.doctors.get(doctor_id)

    def get_shifts(self, doctor_id: int, day: date) -> Optional[List[WorkingWindow]]:
        return self.shifts.get((doctor_id, day))

    def list_for_doctor(self, doctor_id: int, start_day: date, end_day: date) -> List[AppointmentDto]:
        with self._mutex:
            rows = [
                replace(a) for a in self.appts.values()
                if a.doctor_id == doctor_id and start_day <= a.scheduled_at.date() <= end_day
            ]
        if self.read_delay:
            _time.sleep(self.read_delay)
        return sorted(rows, key=lambda a: (a.scheduled_at, a.queue_number))

    def list_in_progress(self, doctor_id: int) -> List[AppointmentDto]:
        with self._mutex:
            return [replace(a) for a in self.appts.values() if a.doctor_id == doctor_id and a.status == "IN_PROGRESS"]

    def next_queue_number(self, doctor_id: int, day: date) -> int:
        with self._mutex:
            current = self.counters.get((doctor_id, day))
            if current is None:
                current = max((a.queue_number for a in self.appts.values()
                               if a.doctor_id == doctor_id and a.scheduled_at.date() == day), default=0)
            self.counters[(doctor_id, day)] = current + 1
            return current + 1

    def create(self, appt: NewAppointment) -> AppointmentDto:
        with self._mutex:
            a = AppointmentDto(id=self._id, updated_at=appt.created_at, **vars(appt))
            self.appts[a.id] = a
            self._id += 1
        return replace(a)

    def add(self, appt: AppointmentDto) -> AppointmentDto:
        with self._mutex:
            self.appts[appt.id] = appt
            self._id = max(self._id, appt.id + 1)
        return appt

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        a = self.appts.get(appointment_id)
        return replace(a) if a else None

    def update(self, appointment_id: int, **changes) -> AppointmentDto:
        with self._mutex:
            a = replace(self.appts[appointment_id], **changes)
            self.appts[appointment_id] = a
        return replace(a)


class RecordingAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, appointment_id, doctor_id, from_status=None, to_status=None, details=None):
        self.entries.append((action, appointment_id, from_status, to_status))


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now
