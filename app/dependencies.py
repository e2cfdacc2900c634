"""
FastAPI dependency injection functions
These are reusable dependencies that can be injected into route handlers
"""
from fastapi import Depends
from sqlmodel import Session

from app.application.ports.clock import Clock
from app.application.services.appointments_service import AppointmentsService
from app.database import get_session
from app.db.models import Clinic, Hospital
from app.infrastructure.clock.system_clock import SystemClock
from app.infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from app.infrastructure.persistence.sqlalchemy.repositories.directory_repository_sql import SqlDirectoryRepository
from app.services import DoctorService, FacilityService, PatientService


def get_clock() -> Clock:
    """Overridden in tests to pin 'now'."""
    return SystemClock()


def get_appointments_service(
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> AppointmentsService:
    return AppointmentsService(
        repo=SqlAppointmentsRepository(session),
        directory=SqlDirectoryRepository(session),
        clock=clock,
    )


def get_doctor_service(session: Session = Depends(get_session)) -> DoctorService:
    return DoctorService(session)


def get_patient_service(session: Session = Depends(get_session)) -> PatientService:
    return PatientService(session)


def get_hospital_service(session: Session = Depends(get_session)) -> FacilityService:
    return FacilityService(session, Hospital)


def get_clinic_service(session: Session = Depends(get_session)) -> FacilityService:
    return FacilityService(session, Clinic)
