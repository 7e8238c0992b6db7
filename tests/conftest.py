import pytest

from clinic_scheduler.application.services.appointments_service import AppointmentsService
from clinic_scheduler.infrastructure.locks.memory_doctor_lock import InMemoryDoctorLock

from fakes import TZ, FakeApptRepo, FixedClock, RecordingAudit, at


@pytest.fixture
def repo():
    return FakeApptRepo()


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def clock():
    return FixedClock(at("07:30"))


@pytest.fixture
def svc(repo, audit, clock):
    return AppointmentsService(repo=repo, lock=InMemoryDoctorLock(), audit=audit, tz=TZ, slot_minutes=30, clock=clock)
