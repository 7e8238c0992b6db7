from typing import List, Optional
from fastapi import APIRouter, Depends, Query
import logging

from ..application.services.appointments_service import AppointmentsService
from ..schemas.slots.slot import SlotResponse
from ..utils import parse_date
from .dependencies import get_appointments_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/slots", tags=["Slots"])


@router.get("/", response_model=List[SlotResponse])
def get_slots(
    doctor_id: int = Query(...),
    date: str = Query(..., description="YYYY-MM-DD"),
    appointment_id: Optional[int] = Query(None, description="Appointment being edited; its own slot stays selectable"),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    slots = appt_service.list_slots(doctor_id, parse_date(date), current_appointment_id=appointment_id)
    return [SlotResponse.model_validate(s) for s in slots]
