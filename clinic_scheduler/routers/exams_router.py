from fastapi import APIRouter, Depends, HTTPException
import logging

from ..application.services.exams_service import ExamsService
from ..schemas.exams.exam import ExamEditStatusResponse, ExamResponse, ExamUpdate
from .dependencies import get_exams_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exams", tags=["Medical Exams"])


@router.get("/{exam_id}/edit-status", response_model=ExamEditStatusResponse)
def get_edit_status(exam_id: int, exams_service: ExamsService = Depends(get_exams_service)):
    return ExamEditStatusResponse.model_validate(exams_service.edit_status(exam_id))


@router.patch("/{exam_id}", response_model=ExamResponse)
def update_exam(
    exam_id: int,
    update: ExamUpdate,
    exams_service: ExamsService = Depends(get_exams_service),
):
    try:
        exam = exams_service.update_exam(exam_id, diagnosis=update.diagnosis, notes=update.notes)
        return ExamResponse.model_validate(exam)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating exam {exam_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update exam")
