from typing import Optional, Dict, Any, Protocol


class AuditLogger(Protocol):
    def log(self, action: str, appointment_id: int, doctor_id: int, from_status: Optional[str] = None, to_status: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        ...
