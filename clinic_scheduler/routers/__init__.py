# Routers package
from . import appointments_router
from . import slots_router
from . import queue_router
from . import exams_router

__all__ = [
    "appointments_router",
    "slots_router",
    "queue_router",
    "exams_router",
]
