from datetime import datetime
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse, Response


class APIException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class ValidationError(APIException):
    """Malformed input: bad working hours, naive timestamps, missing fields."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class NotFound(APIException):
    def __init__(self, detail: str):
        super().__init__(status_code=404, detail=detail)


class SlotConflict(APIException):
    """The proposed interval overlaps another active appointment of the doctor."""

    def __init__(self, doctor_id: int, start: datetime, end: datetime, conflicting_id: Optional[int] = None):
        self.doctor_id = doctor_id
        self.start = start
        self.end = end
        self.conflicting_id = conflicting_id
        detail = f"Time slot {start.isoformat()} - {end.isoformat()} is already booked for doctor {doctor_id}"
        if conflicting_id is not None:
            detail += f" (appointment {conflicting_id})"
        super().__init__(status_code=409, detail=detail)


class IllegalTransition(APIException):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(status_code=409, detail=f"Cannot change appointment status from {current} to {requested}")


class AlreadyInProgress(APIException):
    def __init__(self, doctor_id: int, appointment_id: int):
        self.doctor_id = doctor_id
        self.appointment_id = appointment_id
        super().__init__(
            status_code=409,
            detail=f"Doctor {doctor_id} is already seeing a patient (appointment {appointment_id})",
        )


class QueueEmpty(APIException):
    """No waiting patient for the doctor. An empty result, not a failure."""

    def __init__(self, doctor_id: int):
        self.doctor_id = doctor_id
        super().__init__(status_code=204, detail=f"No patients waiting for doctor {doctor_id}")


class RecordLocked(APIException):
    def __init__(self, deadline: datetime):
        self.deadline = deadline
        super().__init__(status_code=403, detail=f"Record can no longer be edited (locked at {deadline.isoformat()})")


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    if exc.status_code == 204:
        return Response(status_code=204)
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )
