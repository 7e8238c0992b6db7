from datetime import datetime
from typing import Optional
from sqlmodel import Session, select
import pytz

from .....db.models import MedicalExam
from .....exceptions import NotFound
from .....application.ports.exam_repo import ExamRepository, MedicalExamDto


class SqlExamRepository(ExamRepository):
    def __init__(self, session: Session, tz):
        self.session = session
        self.tz = tz

    def _from_db(self, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = pytz.utc.localize(value)
        return value.astimezone(self.tz)

    def _to_dto(self, e: MedicalExam) -> MedicalExamDto:
        return MedicalExamDto(
            id=e.id,
            doctor_id=e.doctor_id,
            patient_id=e.patient_id,
            appointment_id=e.appointment_id,
            diagnosis=e.diagnosis,
            notes=e.notes,
            created_at=self._from_db(e.created_at),
            updated_at=self._from_db(e.updated_at),
        )

    def get_by_id(self, exam_id: int) -> Optional[MedicalExamDto]:
        e = self.session.exec(select(MedicalExam).where(MedicalExam.id == exam_id)).first()
        return self._to_dto(e) if e else None

    def update(self, exam_id: int, diagnosis: Optional[str], notes: Optional[str], updated_at: datetime) -> MedicalExamDto:
        e = self.session.exec(select(MedicalExam).where(MedicalExam.id == exam_id)).first()
        if not e:
            raise NotFound("Medical exam not found")
        if diagnosis is not None:
            e.diagnosis = diagnosis
        if notes is not None:
            e.notes = notes
        e.updated_at = updated_at.astimezone(pytz.utc)
        self.session.add(e)
        self.session.commit()
        self.session.refresh(e)
        return self._to_dto(e)
