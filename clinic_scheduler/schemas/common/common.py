# clinic_scheduler/schemas/common.py
from pydantic import BaseModel
from typing import Any, Optional


class ErrorResponse(BaseModel):
    success: bool = False
    data: Optional[Any] = None
    error: str


class HealthResponse(BaseModel):
    status: str
    app: str
    version: str
    database: bool
