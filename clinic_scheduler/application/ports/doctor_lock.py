from datetime import date
from typing import ContextManager, Protocol


class DoctorLock(Protocol):
    def hold(self, doctor_id: int, day: date) -> ContextManager[None]:
        ...
