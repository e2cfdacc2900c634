from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response
import logging

from ..dependencies import get_appointments_service, get_patient_service
from ..application.ports.appointments_repo import AppointmentFilters
from ..application.scheduling.lifecycle import SCHEDULED
from ..application.services.appointments_service import AppointmentsService
from ..exceptions import ValidationError
from ..schemas.appointments.appointment import AppointmentResponse, BookingRequest, RescheduleRequest
from ..schemas.doctors.doctor import DoctorResponse
from ..schemas.patients.patient import PatientCreate, PatientFilters, PatientResponse, PatientUpdate
from ..schemas.common.common import ERROR_RESPONSES
from ..services import PatientService
from .appointments_router import owned_appointment, to_response, to_responses
from ..config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"], responses=ERROR_RESPONSES)


@router.get("/", response_model=List[PatientResponse])
def get_patients(
    search: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    age_group: Optional[str] = Query(None),
    birth_year: Optional[int] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=500),
    patient_service: PatientService = Depends(get_patient_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    filters = PatientFilters(search=search, email=email, age_group=age_group, birth_year=birth_year)
    today = appt_service.clock.now().date()
    patients = patient_service.get_all_patients(filters, skip=skip, limit=limit, today=today)
    return [PatientResponse.from_model(p, today) for p in patients]


@router.post("/", response_model=PatientResponse, status_code=201)
def create_patient(patient_data: PatientCreate, patient_service: PatientService = Depends(get_patient_service)):
    return PatientResponse.from_model(patient_service.create_patient(patient_data))


@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(patient_id: int, patient_service: PatientService = Depends(get_patient_service)):
    return PatientResponse.from_model(patient_service.get_patient_by_id(patient_id))


@router.put("/{patient_id}", response_model=PatientResponse)
@router.patch("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: int,
    update_data: PatientUpdate,
    patient_service: PatientService = Depends(get_patient_service),
):
    return PatientResponse.from_model(patient_service.update_patient(patient_id, update_data))


@router.delete("/{patient_id}", status_code=204)
def delete_patient(
    patient_id: int,
    patient_service: PatientService = Depends(get_patient_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    patient_service.delete_patient(patient_id, now=appt_service.clock.now())
    return Response(status_code=204)


@router.get("/{patient_id}/appointments", response_model=List[AppointmentResponse])
def patient_appointments(
    patient_id: int,
    patient_service: PatientService = Depends(get_patient_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    patient_service.get_patient_by_id(patient_id)
    filters = AppointmentFilters(patient_id=patient_id, newest_first=True)
    return to_responses(appt_service.list(filters), appt_service)


@router.get("/{patient_id}/upcoming_appointments", response_model=List[AppointmentResponse])
def patient_upcoming_appointments(
    patient_id: int,
    patient_service: PatientService = Depends(get_patient_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    patient_service.get_patient_by_id(patient_id)
    return to_responses(appt_service.upcoming(AppointmentFilters(patient_id=patient_id)), appt_service)


@router.get("/{patient_id}/doctors", response_model=List[DoctorResponse])
def patient_doctors(patient_id: int, patient_service: PatientService = Depends(get_patient_service)):
    return [DoctorResponse.from_model(d) for d in patient_service.get_patient_doctors(patient_id)]


@router.post("/{patient_id}/book_appointment", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    patient_id: int,
    booking: BookingRequest,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    if booking.doctor_id is None:
        raise ValidationError.for_field("doctor_id", "can't be blank")
    appt = appt_service.book(
        doctor_id=booking.doctor_id,
        patient_id=patient_id,
        appointment_date=booking.appointment_date,
        duration_minutes=booking.duration_minutes,
        status=SCHEDULED,
        notes=booking.notes,
        appointment_type=booking.appointment_type,
    )
    return to_response(appt, appt_service)


@router.patch("/{patient_id}/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_patient_appointment(
    patient_id: int,
    appointment_id: int,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    owned_appointment(appt_service, appointment_id, patient_id=patient_id)
    return to_response(appt_service.cancel(appointment_id), appt_service)


@router.patch("/{patient_id}/appointments/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_patient_appointment(
    patient_id: int,
    appointment_id: int,
    request: RescheduleRequest,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    owned_appointment(appt_service, appointment_id, patient_id=patient_id)
    appt = appt_service.reschedule(appointment_id, request.appointment_date, request.duration_minutes)
    return to_response(appt, appt_service)
