# clinic_scheduler/db/models/health/appointment.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, Index, text
from datetime import datetime, date

# Storage backstop for the no-overlap rule: two active rows can never share a start
_ACTIVE_ONLY = text("status NOT IN ('COMPLETED', 'CANCELLED', 'NO_SHOW')")


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_doctor_start_active",
            "doctor_id",
            "scheduled_at",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
        Index("uq_appointments_doctor_day_queue", "doctor_id", "appointment_date", "queue_number", unique=True),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    patient_id: int = Field(index=True)
    # stored in UTC; the repository converts to the clinic zone on read
    scheduled_at: datetime = Field(sa_type=DateTime(timezone=True))
    # clinic-local calendar day of scheduled_at
    appointment_date: date = Field(index=True)
    duration_minutes: int = Field(default=30)
    type: str = Field(default="CONSULTATION")
    status: str = Field(default="SCHEDULED", index=True)
    queue_number: int
    priority: Optional[int] = None
    priority_reason: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class QueueCounter(SQLModel, table=True):
    """Highest queue number issued per doctor and day. Only ever increases."""

    __tablename__ = "queue_counters"
    doctor_id: int = Field(foreign_key="doctors.id", primary_key=True)
    work_date: date = Field(primary_key=True)
    last_number: int = Field(default=0)
