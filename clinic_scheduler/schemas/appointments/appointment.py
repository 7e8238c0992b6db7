# clinic_scheduler/schemas/appointments/appointment.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from ...application.services.appointment_lifecycle import AppointmentType, BookingChannel


class AppointmentCreate(BaseModel):
    doctor_id: int
    patient_id: int
    scheduled_at: datetime  # ISO 8601; without offset it is read as clinic-local time
    type: AppointmentType = AppointmentType.CONSULTATION
    channel: BookingChannel = BookingChannel.STAFF
    reason: Optional[str] = None
    notes: Optional[str] = None
    # 1 is most urgent; normal patients leave it unset
    priority: Optional[int] = Field(default=None, ge=1, le=9)
    priority_reason: Optional[str] = None


class WalkInCreate(BaseModel):
    doctor_id: int
    patient_id: int
    reason: Optional[str] = None
    priority_reason: Optional[str] = None  # EMERGENCY, ELDERLY, PREGNANT, DISABILITY, CHILD, VIP


class AppointmentUpdate(BaseModel):
    scheduled_at: datetime
    doctor_id: Optional[int] = None
    reason: Optional[str] = None
    notes: Optional[str] = None


class AppointmentCancel(BaseModel):
    cancel_reason: str = Field(min_length=1)


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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
