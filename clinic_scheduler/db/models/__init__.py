# Models package (re-export feature modules for stable imports)
from .health.appointment import Appointment, QueueCounter
from .health.doctor import Doctor, DoctorShift
from .health.exam import MedicalExam

__all__ = [
    "Appointment",
    "Doctor",
    "DoctorShift",
    "MedicalExam",
    "QueueCounter",
]
