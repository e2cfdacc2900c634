from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response
import logging
from datetime import date, timedelta

from ..dependencies import get_appointments_service, get_doctor_service
from ..application.ports.appointments_repo import AppointmentFilters
from ..application.scheduling.lifecycle import SCHEDULED
from ..application.services.appointments_service import AppointmentsService
from ..exceptions import ValidationError
from ..schemas.appointments.appointment import (
    AppointmentResponse,
    AvailabilityResponse,
    BookingRequest,
    BusyInterval,
)
from ..schemas.doctors.doctor import DoctorCreate, DoctorFilters, DoctorResponse, DoctorStatistics, DoctorUpdate
from ..schemas.patients.patient import PatientResponse
from ..schemas.common.common import ERROR_RESPONSES
from ..services import DoctorService
from .appointments_router import owned_appointment, to_response, to_responses
from ..config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["Doctors"], responses=ERROR_RESPONSES)


@router.get("/", response_model=List[DoctorResponse])
def get_doctors(
    search: Optional[str] = Query(None),
    specialization: Optional[str] = Query(None),
    hospital_id: Optional[int] = Query(None),
    clinic_id: Optional[int] = Query(None),
    min_experience: Optional[int] = Query(None, ge=0),
    available_date: Optional[str] = Query(None),
    works_at: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=500),
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    filters = DoctorFilters(
        search=search,
        specialization=specialization,
        hospital_id=hospital_id,
        clinic_id=clinic_id,
        min_experience=min_experience,
        available_date=available_date,
        works_at=works_at,
    )
    doctors = doctor_service.get_all_doctors(filters, skip=skip, limit=limit)
    return [DoctorResponse.from_model(d) for d in doctors]


@router.post("/", response_model=DoctorResponse, status_code=201)
def create_doctor(doctor_data: DoctorCreate, doctor_service: DoctorService = Depends(get_doctor_service)):
    return DoctorResponse.from_model(doctor_service.create_doctor(doctor_data))


@router.get("/{doctor_id}", response_model=DoctorResponse)
def get_doctor(doctor_id: int, doctor_service: DoctorService = Depends(get_doctor_service)):
    return DoctorResponse.from_model(doctor_service.get_doctor_by_id(doctor_id))


@router.put("/{doctor_id}", response_model=DoctorResponse)
@router.patch("/{doctor_id}", response_model=DoctorResponse)
def update_doctor(
    doctor_id: int,
    update_data: DoctorUpdate,
    doctor_service: DoctorService = Depends(get_doctor_service),
):
    return DoctorResponse.from_model(doctor_service.update_doctor(doctor_id, update_data))


@router.delete("/{doctor_id}", status_code=204)
def delete_doctor(
    doctor_id: int,
    doctor_service: DoctorService = Depends(get_doctor_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    doctor_service.delete_doctor(doctor_id, now=appt_service.clock.now())
    return Response(status_code=204)


@router.get("/{doctor_id}/appointments", response_model=List[AppointmentResponse])
def doctor_appointments(
    doctor_id: int,
    doctor_service: DoctorService = Depends(get_doctor_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    doctor_service.get_doctor_by_id(doctor_id)
    return to_responses(appt_service.list(AppointmentFilters(doctor_id=doctor_id)), appt_service)


@router.get("/{doctor_id}/upcoming_appointments", response_model=List[AppointmentResponse])
def doctor_upcoming_appointments(
    doctor_id: int,
    doctor_service: DoctorService = Depends(get_doctor_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    doctor_service.get_doctor_by_id(doctor_id)
    return to_responses(appt_service.upcoming(AppointmentFilters(doctor_id=doctor_id)), appt_service)


@router.get("/{doctor_id}/past_appointments", response_model=List[AppointmentResponse])
def doctor_past_appointments(
    doctor_id: int,
    doctor_service: DoctorService = Depends(get_doctor_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    doctor_service.get_doctor_by_id(doctor_id)
    filters = AppointmentFilters(doctor_id=doctor_id, newest_first=True)
    return to_responses(appt_service.past(filters), appt_service)


@router.get("/{doctor_id}/schedule", response_model=List[AppointmentResponse])
def doctor_schedule(
    doctor_id: int,
    day: Optional[date] = Query(None, alias="date"),
    doctor_service: DoctorService = Depends(get_doctor_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    doctor_service.get_doctor_by_id(doctor_id)
    day = day or appt_service.clock.now().date()
    return to_responses(appt_service.list(AppointmentFilters(doctor_id=doctor_id, date=day)), appt_service)


@router.get("/{doctor_id}/availability", response_model=AvailabilityResponse)
def doctor_availability(
    doctor_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    doctor_service: DoctorService = Depends(get_doctor_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    doctor_service.get_doctor_by_id(doctor_id)
    start_date = start_date or appt_service.clock.now().date()
    end_date = end_date or start_date + timedelta(days=7)
    if end_date < start_date:
        raise ValidationError.for_field("end_date", "must not be before start_date")
    busy = appt_service.busy_intervals(doctor_id, start_date, end_date)
    return AvailabilityResponse(
        doctor_id=doctor_id,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        busy_slots=[BusyInterval(start=b.start, end=b.end) for b in busy],
    )


@router.get("/{doctor_id}/statistics", response_model=DoctorStatistics)
def doctor_statistics(
    doctor_id: int,
    doctor_service: DoctorService = Depends(get_doctor_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return doctor_service.get_doctor_statistics(doctor_id, now=appt_service.clock.now())


@router.get("/{doctor_id}/patients", response_model=List[PatientResponse])
def doctor_patients(doctor_id: int, doctor_service: DoctorService = Depends(get_doctor_service)):
    return [PatientResponse.from_model(p) for p in doctor_service.get_doctor_patients(doctor_id)]


@router.post("/{doctor_id}/book_appointment", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    doctor_id: int,
    booking: BookingRequest,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    if booking.patient_id is None:
        raise ValidationError.for_field("patient_id", "can't be blank")
    appt = appt_service.book(
        doctor_id=doctor_id,
        patient_id=booking.patient_id,
        appointment_date=booking.appointment_date,
        duration_minutes=booking.duration_minutes,
        status=SCHEDULED,
        notes=booking.notes,
        appointment_type=booking.appointment_type,
    )
    return to_response(appt, appt_service)


@router.patch("/{doctor_id}/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_doctor_appointment(
    doctor_id: int,
    appointment_id: int,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    owned_appointment(appt_service, appointment_id, doctor_id=doctor_id)
    return to_response(appt_service.cancel(appointment_id), appt_service)

