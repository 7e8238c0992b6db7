from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from clinic_scheduler.application.ports.exam_repo import ExamRepository, MedicalExamDto
from clinic_scheduler.application.services.exams_service import ExamsService
from clinic_scheduler.application.services.record_edit_window import RecordEditWindow
from clinic_scheduler.exceptions import NotFound, RecordLocked

from fakes import FixedClock, at

CREATED = at("09:00")


class FakeExamRepo(ExamRepository):
    def __init__(self):
        self.exams = {
            1: MedicalExamDto(id=1, doctor_id=1, patient_id=501, appointment_id=1,
                              diagnosis="flu", notes=None, created_at=CREATED),
            2: MedicalExamDto(id=2, doctor_id=1, patient_id=502, appointment_id=None,
                              diagnosis=None, notes="legacy", created_at=None),
        }

    def get_by_id(self, exam_id):
        e = self.exams.get(exam_id)
        return replace(e) if e else None

    def update(self, exam_id, diagnosis, notes, updated_at):
        e = self.exams[exam_id]
        self.exams[exam_id] = replace(
            e,
            diagnosis=diagnosis if diagnosis is not None else e.diagnosis,
            notes=notes if notes is not None else e.notes,
            updated_at=updated_at,
        )
        return replace(self.exams[exam_id])


@pytest.fixture
def exam_repo():
    return FakeExamRepo()


def make_service(repo, now, **window):
    return ExamsService(repo=repo, window=RecordEditWindow(**window), clock=FixedClock(now))


def test_edit_within_window(exam_repo):
    svc = make_service(exam_repo, CREATED + timedelta(hours=23))
    out = svc.update_exam(1, diagnosis="influenza A")
    assert out.diagnosis == "influenza A"
    assert out.updated_at == CREATED + timedelta(hours=23)


def test_edit_after_window_is_locked(exam_repo):
    svc = make_service(exam_repo, CREATED + timedelta(hours=24))
    with pytest.raises(RecordLocked):
        svc.update_exam(1, notes="late note")
    assert exam_repo.exams[1].notes is None


def test_window_is_rechecked_at_write_time(exam_repo):
    clock = FixedClock(CREATED + timedelta(hours=23, minutes=59))
    svc = ExamsService(repo=exam_repo, window=RecordEditWindow(), clock=clock)
    assert svc.edit_status(1).editable is True
    clock.now = CREATED + timedelta(hours=24, seconds=1)
    with pytest.raises(RecordLocked):
        svc.update_exam(1, diagnosis="changed")


def test_edit_status_reports_deadline(exam_repo):
    svc = make_service(exam_repo, CREATED + timedelta(hours=20))
    status = svc.edit_status(1)
    assert status.editable is True
    assert status.deadline == CREATED + timedelta(hours=24)
    assert status.remaining_seconds == 4 * 3600

    locked = make_service(exam_repo, CREATED + timedelta(days=2)).edit_status(1)
    assert locked.editable is False
    assert locked.remaining_seconds == 0


def test_missing_created_at_follows_the_setting(exam_repo):
    now = datetime(2030, 3, 10, 12, 0, tzinfo=CREATED.tzinfo)
    lenient = make_service(exam_repo, now)
    assert lenient.edit_status(2).deadline is None
    assert lenient.update_exam(2, diagnosis="checked").diagnosis == "checked"

    strict = make_service(exam_repo, now, allow_missing_created_at=False)
    assert strict.edit_status(2).editable is False
    with pytest.raises(RecordLocked):
        strict.update_exam(2, diagnosis="again")


def test_custom_window_length(exam_repo):
    svc = make_service(exam_repo, CREATED + timedelta(hours=3), window=timedelta(hours=2))
    with pytest.raises(RecordLocked):
        svc.update_exam(1, notes="too late")


def test_unknown_exam(exam_repo):
    with pytest.raises(NotFound):
        make_service(exam_repo, CREATED).update_exam(99, notes="x")
