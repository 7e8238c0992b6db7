import pytest

from clinic_scheduler.application.services.appointment_lifecycle import (
    ACTIVE_STATUSES,
    AppointmentStatus as S,
    BookingChannel,
    TERMINAL_STATUSES,
    apply_transition,
    can_transition,
    ensure_transition,
    initial_status,
)
from clinic_scheduler.exceptions import IllegalTransition, ValidationError

from fakes import at

LEGAL = {
    (S.PENDING, S.CONFIRMED), (S.SCHEDULED, S.CONFIRMED),
    (S.PENDING, S.IN_PROGRESS), (S.SCHEDULED, S.IN_PROGRESS), (S.CONFIRMED, S.IN_PROGRESS),
    (S.IN_PROGRESS, S.COMPLETED), (S.SCHEDULED, S.COMPLETED), (S.CONFIRMED, S.COMPLETED),
    (S.PENDING, S.CANCELLED), (S.SCHEDULED, S.CANCELLED), (S.CONFIRMED, S.CANCELLED),
    (S.SCHEDULED, S.NO_SHOW), (S.CONFIRMED, S.NO_SHOW),
}


@pytest.mark.parametrize("current", list(S))
@pytest.mark.parametrize("target", list(S))
def test_transition_table(current, target):
    assert can_transition(current, target) is ((current, target) in LEGAL)


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
def test_terminal_states_are_final(terminal):
    for target in S:
        with pytest.raises(IllegalTransition):
            ensure_transition(terminal, target)


def test_illegal_transition_names_both_states():
    with pytest.raises(IllegalTransition) as exc:
        ensure_transition("COMPLETED", "IN_PROGRESS")
    assert exc.value.current == "COMPLETED"
    assert exc.value.requested == "IN_PROGRESS"


def test_cancel_records_reason_and_time():
    now = at("10:00")
    changes = apply_transition("SCHEDULED", "CANCELLED", now, cancel_reason="  patient ill ")
    assert changes == {"status": "CANCELLED", "updated_at": now, "cancel_reason": "patient ill", "cancelled_at": now}


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_cancel_requires_reason(reason):
    with pytest.raises(ValidationError):
        apply_transition("SCHEDULED", "CANCELLED", at("10:00"), cancel_reason=reason)


def test_cancelling_twice_is_rejected():
    with pytest.raises(IllegalTransition):
        apply_transition("CANCELLED", "CANCELLED", at("10:00"), cancel_reason="again")


def test_initial_status_depends_on_channel():
    assert initial_status(BookingChannel.SELF_SERVICE) == S.PENDING
    assert initial_status(BookingChannel.STAFF) == S.SCHEDULED
    assert initial_status(BookingChannel.WALK_IN) == S.SCHEDULED
    assert {S.PENDING, S.SCHEDULED} <= ACTIVE_STATUSES
