from dataclasses import dataclass
from typing import Optional
from datetime import datetime


@dataclass
class MedicalExamDto:
    id: int
    doctor_id: int
    patient_id: int
    appointment_id: Optional[int]
    diagnosis: Optional[str]
    notes: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime] = None


class ExamRepository:
    def get_by_id(self, exam_id: int) -> Optional[MedicalExamDto]:
        ...

    def update(self, exam_id: int, diagnosis: Optional[str], notes: Optional[str], updated_at: datetime) -> MedicalExamDto:
        ...
