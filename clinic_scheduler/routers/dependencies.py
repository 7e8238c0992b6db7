from datetime import timedelta
from functools import lru_cache

from fastapi import Depends
from sqlmodel import Session

from ..application.ports.doctor_lock import DoctorLock
from ..application.services.appointments_service import AppointmentsService
from ..application.services.exams_service import ExamsService
from ..application.services.record_edit_window import RecordEditWindow
from ..config import settings
from ..database import get_session
from ..infrastructure.audit.std_logger import StdAuditLogger
from ..infrastructure.locks.memory_doctor_lock import InMemoryDoctorLock
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.exam_repository_sql import SqlExamRepository
from ..application.ports.appointments_repo import WorkingWindow
from ..utils import now_local, parse_clock_time


@lru_cache()
def get_doctor_lock() -> DoctorLock:
    # shared by every request in the process; redis shares it across processes
    if settings.LOCK_BACKEND == "redis":
        from ..infrastructure.locks.redis_doctor_lock import RedisDoctorLock
        if not settings.REDIS_URL:
            raise RuntimeError("LOCK_BACKEND=redis requires REDIS_URL")
        return RedisDoctorLock(settings.REDIS_URL, timeout=settings.LOCK_TIMEOUT_SECONDS)
    return InMemoryDoctorLock()


@lru_cache()
def get_default_hours() -> WorkingWindow:
    return WorkingWindow(
        start=parse_clock_time(settings.DEFAULT_WORK_START),
        end=parse_clock_time(settings.DEFAULT_WORK_END),
    )


@lru_cache()
def get_audit_logger() -> StdAuditLogger:
    return StdAuditLogger()


def get_appointments_service(session: Session = Depends(get_session)) -> AppointmentsService:
    tz = settings.clinic_tz
    return AppointmentsService(
        repo=SqlAppointmentsRepository(session, tz, default_hours=get_default_hours()),
        lock=get_doctor_lock(),
        audit=get_audit_logger(),
        tz=tz,
        slot_minutes=settings.SLOT_MINUTES,
        single_in_progress=settings.SINGLE_PATIENT_IN_PROGRESS,
    )


def get_exams_service(session: Session = Depends(get_session)) -> ExamsService:
    tz = settings.clinic_tz
    return ExamsService(
        repo=SqlExamRepository(session, tz),
        window=RecordEditWindow(
            window=timedelta(hours=settings.EDIT_WINDOW_HOURS),
            allow_missing_created_at=settings.EDIT_WINDOW_ALLOW_MISSING_CREATED_AT,
        ),
        clock=lambda: now_local(tz),
    )
