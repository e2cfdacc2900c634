# Models package (re-export feature modules for stable imports)
from .directory.facility import Hospital, Clinic
from .health.doctor import Doctor
from .health.patient import Patient
from .health.appointment import Appointment

__all__ = [
    "Hospital",
    "Clinic",
    "Doctor",
    "Patient",
    "Appointment",
]
