from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
import logging

from ..ports.exam_repo import ExamRepository, MedicalExamDto
from ...exceptions import NotFound
from .record_edit_window import RecordEditWindow

logger = logging.getLogger(__name__)


@dataclass
class EditStatus:
    exam_id: int
    editable: bool
    deadline: Optional[datetime]
    remaining_seconds: Optional[int]


@dataclass
class ExamsService:
    repo: ExamRepository
    window: RecordEditWindow
    clock: Callable[[], datetime]

    def _require_exam(self, exam_id: int) -> MedicalExamDto:
        exam = self.repo.get_by_id(exam_id)
        if not exam:
            raise NotFound("Medical exam not found")
        return exam

    def edit_status(self, exam_id: int) -> EditStatus:
        exam = self._require_exam(exam_id)
        now = self.clock()
        remaining = self.window.remaining(exam.created_at, now)
        return EditStatus(
            exam_id=exam.id,
            editable=self.window.is_editable(exam.created_at, now),
            deadline=self.window.deadline(exam.created_at),
            remaining_seconds=int(remaining.total_seconds()) if remaining is not None else None,
        )

    def update_exam(self, exam_id: int, diagnosis: Optional[str] = None, notes: Optional[str] = None) -> MedicalExamDto:
        exam = self._require_exam(exam_id)
        now = self.clock()
        # checked here, at write time, not only when the form was loaded
        self.window.ensure_editable(exam.created_at, now)
        if exam.created_at is None:
            logger.warning(f"Editing exam {exam_id} without created_at; edit window not enforced")
        return self.repo.update(exam_id, diagnosis, notes, now)
