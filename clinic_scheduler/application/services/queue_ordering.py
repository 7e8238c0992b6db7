"""Call-next ordering for a doctor's waiting patients."""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable, List, Optional

from ..ports.appointments_repo import AppointmentDto
from .appointment_lifecycle import AppointmentStatus, AppointmentType, is_waiting


class PriorityReason(str, Enum):
    EMERGENCY = "EMERGENCY"
    PREGNANT = "PREGNANT"
    ELDERLY = "ELDERLY"
    DISABILITY = "DISABILITY"
    CHILD = "CHILD"
    VIP = "VIP"


NORMAL_RANK = 10

PRIORITY_RANKS = {
    PriorityReason.EMERGENCY: 1,
    PriorityReason.PREGNANT: 2,
    PriorityReason.ELDERLY: 3,
    PriorityReason.DISABILITY: 3,
    PriorityReason.CHILD: 4,
    PriorityReason.VIP: 5,
}


@dataclass(frozen=True)
class QueueEntry:
    position: int
    appointment_id: int
    doctor_id: int
    patient_id: int
    queue_number: int
    priority_rank: int
    priority_reason: Optional[str]
    scheduled_at: datetime
    status: str


def priority_rank(priority: Optional[int], priority_reason: Optional[str], appointment_type: Optional[str] = None) -> int:
    """Smaller is called first. Unknown reasons and missing priority rank as normal.

    An explicit ``priority`` only promotes: values of NORMAL_RANK or above rank as normal.
    """
    ranks = [NORMAL_RANK]
    if priority_reason:
        try:
            ranks.append(PRIORITY_RANKS[PriorityReason(priority_reason.upper())])
        except ValueError:
            pass
    if appointment_type == AppointmentType.EMERGENCY.value:
        ranks.append(PRIORITY_RANKS[PriorityReason.EMERGENCY])
    if priority is not None and priority > 0:
        ranks.append(priority)
    return min(ranks)


def _waiting_today(appointments: Iterable[AppointmentDto], doctor_id: int, today: date) -> List[AppointmentDto]:
    return [
        a for a in appointments
        if a.doctor_id == doctor_id
        and a.scheduled_at.date() == today
        and is_waiting(a.status)
    ]


def ordered_queue(appointments: Iterable[AppointmentDto], doctor_id: int, today: date) -> List[QueueEntry]:
    waiting = _waiting_today(appointments, doctor_id, today)
    # queue_number is unique per doctor and day, so the key is a total order
    waiting.sort(key=lambda a: (priority_rank(a.priority, a.priority_reason, a.type), a.queue_number, a.scheduled_at, a.id))
    return [
        QueueEntry(
            position=i,
            appointment_id=a.id,
            doctor_id=a.doctor_id,
            patient_id=a.patient_id,
            queue_number=a.queue_number,
            priority_rank=priority_rank(a.priority, a.priority_reason, a.type),
            priority_reason=a.priority_reason,
            scheduled_at=a.scheduled_at,
            status=a.status,
        )
        for i, a in enumerate(waiting, start=1)
    ]


def next_for_doctor(appointments: Iterable[AppointmentDto], doctor_id: int, today: date) -> Optional[QueueEntry]:
    queue = ordered_queue(appointments, doctor_id, today)
    return queue[0] if queue else None


def in_progress_for(appointments: Iterable[AppointmentDto], doctor_id: int) -> List[AppointmentDto]:
    return [
        a for a in appointments
        if a.doctor_id == doctor_id and a.status == AppointmentStatus.IN_PROGRESS.value
    ]
