# clinic_scheduler/db/models/health/exam.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from datetime import datetime


class MedicalExam(SQLModel, table=True):
    __tablename__ = "medical_exams"
    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: Optional[int] = Field(default=None, foreign_key="appointments.id")
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    patient_id: int = Field(index=True)
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    # legacy rows may lack created_at
    created_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
