# clinic_scheduler/schemas/slots/slot.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime


class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time: str  # HH:MM
    start: datetime
    end: datetime
    available: bool
    current: bool = False
