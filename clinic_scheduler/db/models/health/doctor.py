# clinic_scheduler/db/models/health/doctor.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from datetime import datetime, date, time, timezone


class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    specialization: Optional[str] = None
    is_active: bool = Field(default=True)
    # None falls back to DEFAULT_WORK_START / DEFAULT_WORK_END
    work_start: Optional[time] = None
    work_end: Optional[time] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True))


class DoctorShift(SQLModel, table=True):
    __tablename__ = "doctor_shifts"
    id: Optional[int] = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    work_date: date = Field(index=True)
    start_time: time
    end_time: time
    status: str = Field(default="AVAILABLE")  # AVAILABLE | BOOKED | CANCELLED
