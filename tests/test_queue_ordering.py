from datetime import timedelta

import pytest

from clinic_scheduler.application.services.queue_ordering import (
    NORMAL_RANK,
    in_progress_for,
    next_for_doctor,
    ordered_queue,
    priority_rank,
)

from fakes import DAY, make_appt


def _ids(queue):
    return [e.appointment_id for e in queue]


def test_priority_class_goes_before_arrival_order():
    appts = [
        make_appt(1, "08:00", queue_number=3),
        make_appt(2, "08:30", queue_number=5, priority_reason="ELDERLY"),
        make_appt(3, "09:00", queue_number=1),
    ]
    queue = ordered_queue(appts, 1, DAY)
    assert _ids(queue) == [2, 3, 1]
    assert [e.position for e in queue] == [1, 2, 3]


def test_order_is_stable_across_calls_and_input_order():
    appts = [
        make_appt(1, "08:00", queue_number=4, priority_reason="PREGNANT"),
        make_appt(2, "08:30", queue_number=2, priority_reason="ELDERLY"),
        make_appt(3, "09:00", queue_number=1, priority_reason="ELDERLY"),
        make_appt(4, "09:30", queue_number=7),
        make_appt(5, "10:00", queue_number=6, type="EMERGENCY"),
    ]
    first = ordered_queue(appts, 1, DAY)
    assert _ids(first) == [5, 1, 3, 2, 4]
    assert ordered_queue(list(reversed(appts)), 1, DAY) == first
    assert ordered_queue(appts, 1, DAY) == first


def test_priority_beats_any_queue_number():
    appts = [make_appt(i, "08:00", queue_number=i) for i in range(1, 40)]
    appts.append(make_appt(99, "08:00", queue_number=999, priority_reason="child"))
    assert next_for_doctor(appts, 1, DAY).appointment_id == 99


def test_only_todays_waiting_entries_of_the_doctor_are_queued():
    appts = [
        make_appt(1, "08:00", status="IN_PROGRESS"),
        make_appt(2, "08:30", status="CANCELLED"),
        make_appt(3, "09:00", status="COMPLETED"),
        make_appt(4, "09:30", doctor_id=2),
        make_appt(5, "10:00", day=DAY + timedelta(days=1)),
        make_appt(6, "10:30", status="PENDING"),
        make_appt(7, "11:00", status="CONFIRMED"),
    ]
    assert _ids(ordered_queue(appts, 1, DAY)) == [6, 7]


def test_empty_queue_has_no_next():
    assert next_for_doctor([], 1, DAY) is None
    assert next_for_doctor([make_appt(1, "08:00", status="IN_PROGRESS")], 1, DAY) is None


@pytest.mark.parametrize("priority,reason,appt_type,expected", [
    (None, None, "CONSULTATION", NORMAL_RANK),
    (None, "EMERGENCY", None, 1),
    (None, None, "EMERGENCY", 1),
    (None, "PREGNANT", None, 2),
    (None, "elderly", None, 3),
    (None, "DISABILITY", None, 3),
    (None, "CHILD", None, 4),
    (None, "VIP", None, 5),
    (None, "UNKNOWN", None, NORMAL_RANK),
    (2, None, None, 2),
    (50, None, None, NORMAL_RANK),
    (4, "EMERGENCY", None, 1),
])
def test_priority_rank(priority, reason, appt_type, expected):
    assert priority_rank(priority, reason, appt_type) == expected


def test_in_progress_for_filters_by_doctor():
    appts = [make_appt(1, "08:00", status="IN_PROGRESS"), make_appt(2, "08:00", status="IN_PROGRESS", doctor_id=2)]
    assert [a.id for a in in_progress_for(appts, 1)] == [1]
