from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..application.services.appointments_service import AppointmentsService
from ..config import settings
from ..schemas.common.common import ErrorResponse
from ..schemas.appointments.appointment import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    WalkInCreate,
)
from ..utils import parse_date, to_clinic_time
from .dependencies import get_appointments_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.post("/", response_model=AppointmentResponse, status_code=201, responses={409: {"model": ErrorResponse}})
def book_appointment(
    appointment_data: AppointmentCreate,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appt = appt_service.book(
            doctor_id=appointment_data.doctor_id,
            patient_id=appointment_data.patient_id,
            scheduled_at=to_clinic_time(appointment_data.scheduled_at, settings.clinic_tz),
            appointment_type=appointment_data.type,
            channel=appointment_data.channel,
            reason=appointment_data.reason,
            notes=appointment_data.notes,
            priority=appointment_data.priority,
            priority_reason=appointment_data.priority_reason,
        )
        return AppointmentResponse.model_validate(appt)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error booking appointment: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to book appointment")


@router.post("/walk-in", response_model=AppointmentResponse, status_code=201)
def register_walk_in(
    walk_in: WalkInCreate,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appt = appt_service.register_walk_in(
            doctor_id=walk_in.doctor_id,
            patient_id=walk_in.patient_id,
            reason=walk_in.reason,
            priority_reason=walk_in.priority_reason,
        )
        return AppointmentResponse.model_validate(appt)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error registering walk-in: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to register walk-in")


@router.get("/", response_model=List[AppointmentResponse])
def list_appointments(
    doctor_id: int = Query(...),
    date: str = Query(..., description="YYYY-MM-DD"),
    view: str = Query("day", pattern="^(day|week|month)$"),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appts = appt_service.list_appointments(doctor_id, parse_date(date), view)
        return [AppointmentResponse.model_validate(a) for a in appts]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving appointments: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve appointments")


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return AppointmentResponse.model_validate(appt_service.get(appointment_id))


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: int,
    update: AppointmentUpdate,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appt = appt_service.reschedule(
            appointment_id,
            scheduled_at=to_clinic_time(update.scheduled_at, settings.clinic_tz),
            doctor_id=update.doctor_id,
            reason=update.reason,
            notes=update.notes,
        )
        return AppointmentResponse.model_validate(appt)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error rescheduling appointment {appointment_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to reschedule appointment")


@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
def confirm_appointment(appointment_id: int, appt_service: AppointmentsService = Depends(get_appointments_service)):
    return AppointmentResponse.model_validate(appt_service.confirm(appointment_id))


@router.post("/{appointment_id}/check-in", response_model=AppointmentResponse)
def check_in_appointment(appointment_id: int, appt_service: AppointmentsService = Depends(get_appointments_service)):
    return AppointmentResponse.model_validate(appt_service.check_in(appointment_id))


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
def complete_appointment(appointment_id: int, appt_service: AppointmentsService = Depends(get_appointments_service)):
    return AppointmentResponse.model_validate(appt_service.complete(appointment_id))


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    body: AppointmentCancel,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return AppointmentResponse.model_validate(appt_service.cancel(appointment_id, body.cancel_reason))


@router.post("/{appointment_id}/no-show", response_model=AppointmentResponse)
def mark_no_show(appointment_id: int, appt_service: AppointmentsService = Depends(get_appointments_service)):
    return AppointmentResponse.model_validate(appt_service.mark_no_show(appointment_id))
