# Services package (re-export feature modules for stable imports)
from .doctors.doctor_service import DoctorService
from .patients.patient_service import PatientService
from .facilities.facility_service import FacilityService

__all__ = [
    "DoctorService",
    "PatientService",
    "FacilityService",
]
