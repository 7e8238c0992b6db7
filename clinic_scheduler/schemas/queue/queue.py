# clinic_scheduler/schemas/queue/queue.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class QueueEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    position: int
    appointment_id: int
    doctor_id: int
    patient_id: int
    queue_number: int
    priority_rank: int
    priority_reason: Optional[str] = None
    scheduled_at: datetime
    status: str
