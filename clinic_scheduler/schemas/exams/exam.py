# clinic_scheduler/schemas/exams/exam.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class ExamUpdate(BaseModel):
    diagnosis: Optional[str] = None
    notes: Optional[str] = None


class ExamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    doctor_id: int
    patient_id: int
    appointment_id: Optional[int] = None
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ExamEditStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    exam_id: int
    editable: bool
    deadline: Optional[datetime] = None
    remaining_seconds: Optional[int] = None
