from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ...exceptions import RecordLocked
from .slot_calendar import ensure_aware


@dataclass(frozen=True)
class RecordEditWindow:
    """Time lock on finalized clinical records.

    Mutating calls check again at write time, since the window can close
    between reading a record and submitting the edit.
    """

    window: timedelta = timedelta(hours=24)
    # Records without created_at are treated as editable while this is set
    allow_missing_created_at: bool = True

    def deadline(self, created_at: Optional[datetime]) -> Optional[datetime]:
        if created_at is None:
            return None
        return ensure_aware(created_at, "created_at") + self.window

    def is_editable(self, created_at: Optional[datetime], now: datetime) -> bool:
        ensure_aware(now, "now")
        if created_at is None:
            return self.allow_missing_created_at
        return now < self.deadline(created_at)

    def remaining(self, created_at: Optional[datetime], now: datetime) -> Optional[timedelta]:
        ensure_aware(now, "now")
        if created_at is None:
            return None
        return max(self.deadline(created_at) - now, timedelta(0))

    def ensure_editable(self, created_at: Optional[datetime], now: datetime) -> None:
        if not self.is_editable(created_at, now):
            raise RecordLocked(self.deadline(created_at) or now)
