from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlmodel import Session, select
import logging
from datetime import date, timedelta

from ..database import get_session
from ..db.models import Doctor, Patient
from ..dependencies import get_appointments_service, get_doctor_service, get_patient_service
from ..application.ports.appointments_repo import AppointmentDto, AppointmentFilters
from ..application.scheduling.lifecycle import Operation
from ..application.services.appointments_service import AppointmentsService
from ..exceptions import NotFoundError
from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatistics,
    AppointmentUpdate,
    AvailableSlotsResponse,
    CalendarEvent,
    RescheduleRequest,
)
from ..schemas.common.common import ERROR_RESPONSES
from ..services import DoctorService, PatientService
from ..config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"], responses=ERROR_RESPONSES)

STATUS_COLORS = {
    "scheduled": "#007bff",
    "confirmed": "#28a745",
    "completed": "#6c757d",
    "cancelled": "#dc3545",
}


def to_response(appt: AppointmentDto, appt_service: AppointmentsService) -> AppointmentResponse:
    return AppointmentResponse.from_dto(
        appt,
        can_be_cancelled=appt_service.can_be_cancelled(appt),
        can_be_rescheduled=appt_service.can_be_rescheduled(appt),
    )


def to_responses(appts: List[AppointmentDto], appt_service: AppointmentsService) -> List[AppointmentResponse]:
    return [to_response(a, appt_service) for a in appts]


def owned_appointment(appt_service: AppointmentsService, appointment_id: int, doctor_id: Optional[int] = None,
                      patient_id: Optional[int] = None) -> AppointmentDto:
    """Appointments reached through a doctor or patient URL must belong to them."""
    appt = appt_service.get(appointment_id)
    if (doctor_id is not None and appt.doctor_id != doctor_id) or \
            (patient_id is not None and appt.patient_id != patient_id):
        raise NotFoundError("Appointment", appointment_id)
    return appt


# ---- collection routes (declared before /{appointment_id}) ----

@router.get("/", response_model=List[AppointmentResponse])
def list_appointments(
    day: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: Optional[str] = Query(None),
    doctor_id: Optional[int] = Query(None),
    patient_id: Optional[int] = Query(None),
    appointment_type: Optional[str] = Query(None),
    min_duration: Optional[int] = Query(None, ge=0),
    max_duration: Optional[int] = Query(None, ge=0),
    search: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=500),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    filters = AppointmentFilters(
        date=day,
        start_date=start_date,
        end_date=end_date,
        status=status,
        doctor_id=doctor_id,
        patient_id=patient_id,
        appointment_type=appointment_type,
        min_duration=min_duration,
        max_duration=max_duration,
        search=search,
        skip=skip,
        limit=limit,
    )
    return to_responses(appt_service.list(filters), appt_service)


@router.post("/", response_model=AppointmentResponse, status_code=201)
def create_appointment(
    appointment_data: AppointmentCreate,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = appt_service.book(
        doctor_id=appointment_data.doctor_id,
        patient_id=appointment_data.patient_id,
        appointment_date=appointment_data.appointment_date,
        duration_minutes=appointment_data.duration_minutes,
        status=appointment_data.status,
        notes=appointment_data.notes,
        appointment_type=appointment_data.appointment_type,
    )
    return to_response(appt, appt_service)


@router.get("/todays", response_model=List[AppointmentResponse])
def todays_appointments(appt_service: AppointmentsService = Depends(get_appointments_service)):
    today = appt_service.clock.now().date()
    return to_responses(appt_service.list(AppointmentFilters(date=today)), appt_service)


@router.get("/upcoming", response_model=List[AppointmentResponse])
def upcoming_appointments(appt_service: AppointmentsService = Depends(get_appointments_service)):
    return to_responses(appt_service.upcoming(), appt_service)


@router.get("/by_date", response_model=List[AppointmentResponse])
def appointments_by_date(
    day: Optional[date] = Query(None, alias="date"),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    day = day or appt_service.clock.now().date()
    return to_responses(appt_service.list(AppointmentFilters(date=day)), appt_service)


@router.get("/statistics", response_model=AppointmentStatistics)
def appointment_statistics(
    doctor_id: Optional[int] = Query(None),
    patient_id: Optional[int] = Query(None),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    stats = appt_service.statistics(AppointmentFilters(doctor_id=doctor_id, patient_id=patient_id))
    return AppointmentStatistics(**stats.to_dict())


@router.get("/calendar", response_model=List[CalendarEvent])
def appointment_calendar(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    session: Session = Depends(get_session),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    today = appt_service.clock.now().date()
    start = start or today.replace(day=1)
    if end is None:
        next_month = (start.replace(day=28) + timedelta(days=4)).replace(day=1)
        end = next_month - timedelta(days=1)
    appts = appt_service.list(AppointmentFilters(start_date=start, end_date=end))

    doctor_names = _names(session, Doctor, {a.doctor_id for a in appts})
    patient_names = _names(session, Patient, {a.patient_id for a in appts})
    return [
        CalendarEvent(
            id=a.id,
            title=f"{patient_names.get(a.patient_id, 'Unknown Patient')} - {doctor_names.get(a.doctor_id, 'Unknown Doctor')}",
            start=a.appointment_date.isoformat(),
            end=a.end_time.isoformat(),
            color=STATUS_COLORS.get(a.status, "#17a2b8"),
        )
        for a in appts
    ]


@router.get("/available_slots", response_model=AvailableSlotsResponse)
def available_slots(
    doctor_id: int = Query(...),
    day: Optional[date] = Query(None, alias="date"),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    day = day or appt_service.clock.now().date()
    slots = appt_service.available_slots(doctor_id, day)
    return AvailableSlotsResponse(doctor_id=doctor_id, date=day.isoformat(), slots=slots)


@router.get("/doctor_schedule/{doctor_id}", response_model=List[AppointmentResponse])
def doctor_schedule(
    doctor_id: int,
    day: Optional[date] = Query(None, alias="date"),
    doctor_service: DoctorService = Depends(get_doctor_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    doctor_service.get_doctor_by_id(doctor_id)
    day = day or appt_service.clock.now().date()
    return to_responses(appt_service.list(AppointmentFilters(doctor_id=doctor_id, date=day)), appt_service)


@router.get("/patient_history/{patient_id}", response_model=List[AppointmentResponse])
def patient_history(
    patient_id: int,
    patient_service: PatientService = Depends(get_patient_service),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    patient_service.get_patient_by_id(patient_id)
    filters = AppointmentFilters(patient_id=patient_id, newest_first=True)
    return to_responses(appt_service.list(filters), appt_service)


# ---- member routes ----

@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return to_response(appt_service.get(appointment_id), appt_service)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
@router.patch("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    update_data: AppointmentUpdate,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    changes = update_data.model_dump(exclude_unset=True)
    appt = appt_service.update(appointment_id, changes)
    return to_response(appt, appt_service)


@router.delete("/{appointment_id}", status_code=204)
def delete_appointment(
    appointment_id: int,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt_service.delete(appointment_id)
    return Response(status_code=204)


def _transition(appointment_id: int, operation: Operation, appt_service: AppointmentsService) -> AppointmentResponse:
    appt = appt_service.transition(appointment_id, operation)
    return to_response(appt, appt_service)


@router.patch("/{appointment_id}/confirm", response_model=AppointmentResponse)
def confirm_appointment(appointment_id: int, appt_service: AppointmentsService = Depends(get_appointments_service)):
    return _transition(appointment_id, Operation.CONFIRM, appt_service)


@router.patch("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(appointment_id: int, appt_service: AppointmentsService = Depends(get_appointments_service)):
    return _transition(appointment_id, Operation.CANCEL, appt_service)


@router.patch("/{appointment_id}/complete", response_model=AppointmentResponse)
def complete_appointment(appointment_id: int, appt_service: AppointmentsService = Depends(get_appointments_service)):
    return _transition(appointment_id, Operation.COMPLETE, appt_service)


@router.patch("/{appointment_id}/no_show", response_model=AppointmentResponse)
def no_show_appointment(appointment_id: int, appt_service: AppointmentsService = Depends(get_appointments_service)):
    return _transition(appointment_id, Operation.NO_SHOW, appt_service)


@router.patch("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: int,
    request: RescheduleRequest,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = appt_service.transition(appointment_id, Operation.RESCHEDULE, request.model_dump())
    return to_response(appt, appt_service)


@router.get("/{appointment_id}/conflicts", response_model=List[AppointmentResponse])
def appointment_conflicts(
    appointment_id: int,
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return to_responses(appt_service.conflicts_for(appointment_id), appt_service)


def _names(session: Session, model, ids) -> Dict[int, str]:
    if not ids:
        return {}
    rows = session.exec(select(model).where(model.id.in_(sorted(ids)))).all()
    return {r.id: r.full_name for r in rows}
