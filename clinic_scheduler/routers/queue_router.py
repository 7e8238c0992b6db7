from typing import List
from fastapi import APIRouter, Depends, Query, Response
import logging

from ..application.services.appointments_service import AppointmentsService
from ..exceptions import QueueEmpty
from ..schemas.queue.queue import QueueEntryResponse
from .dependencies import get_appointments_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queue", tags=["Queue"])


@router.get("/", response_model=List[QueueEntryResponse])
def get_queue(
    doctor_id: int = Query(...),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return [QueueEntryResponse.model_validate(e) for e in appt_service.ordered_queue(doctor_id)]


@router.post("/call-next", response_model=QueueEntryResponse, responses={204: {"description": "No patient waiting"}})
def call_next(
    doctor_id: int = Query(...),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        entry = appt_service.call_next(doctor_id)
    except QueueEmpty:
        logger.info(f"Call-next for doctor {doctor_id}: queue empty")
        return Response(status_code=204)
    return QueueEntryResponse.model_validate(entry)
