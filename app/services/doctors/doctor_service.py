# app/services/doctor_service.py
from typing import List, Optional
from sqlmodel import Session, select, func, or_
from datetime import datetime, date, time, timedelta
import logging

from app.db.models import Appointment, Clinic, Doctor, Hospital, Patient
from app.schemas import DoctorCreate, DoctorUpdate, DoctorFilters, DoctorStatistics
from app.application.scheduling.lifecycle import ACTIVE_STATUSES, COMPLETED
from app.exceptions import NotFoundError, ValidationError
from app.utils import commit_or_raise

logger = logging.getLogger(__name__)

class DoctorService:
    def __init__(self, session: Session):
        self.session = session

    def get_doctor_by_id(self, doctor_id: int) -> Doctor:
        """Get doctor by ID"""
        doctor = self.session.exec(select(Doctor).where(Doctor.id == doctor_id)).first()
        if not doctor:
            raise NotFoundError("Doctor", doctor_id)
        return doctor

    def get_all_doctors(self, filters: Optional[DoctorFilters] = None, skip: int = 0, limit: int = 100) -> List[Doctor]:
        """Get all doctors with optional filters"""
        query = select(Doctor)

        if filters:
            if filters.search:
                term = f"%{filters.search}%"
                query = query.where(or_(
                    Doctor.first_name.ilike(term),
                    Doctor.last_name.ilike(term),
                    Doctor.specialization.ilike(term),
                ))
            if filters.specialization:
                query = query.where(Doctor.specialization == filters.specialization)
            if filters.hospital_id is not None:
                query = query.where(Doctor.hospital_id == filters.hospital_id)
            if filters.clinic_id is not None:
                query = query.where(Doctor.clinic_id == filters.clinic_id)
            if filters.min_experience is not None:
                query = query.where(Doctor.years_of_experience >= filters.min_experience)
            if filters.available_date:
                day = _parse_day(filters.available_date)
                day_start = datetime.combine(day, time.min)
                busy_ids = (
                    select(Appointment.doctor_id)
                    .where(Appointment.appointment_date >= day_start)
                    .where(Appointment.appointment_date < day_start + timedelta(days=1))
                    .where(Appointment.status.in_(sorted(ACTIVE_STATUSES)))
                )
                query = query.where(Doctor.id.not_in(busy_ids))
            if filters.works_at == "hospital":
                query = query.where(Doctor.hospital_id.is_not(None))
            elif filters.works_at == "clinic":
                query = query.where(Doctor.clinic_id.is_not(None))

        return self.session.exec(
            query.order_by(Doctor.last_name, Doctor.first_name).offset(skip).limit(limit)
        ).all()

    def create_doctor(self, doctor_data: DoctorCreate) -> Doctor:
        """Create new doctor"""
        self._check_facilities(doctor_data.hospital_id, doctor_data.clinic_id)
        doctor = Doctor(**doctor_data.model_dump())
        self.session.add(doctor)
        commit_or_raise(self.session, "creating doctor")
        self.session.refresh(doctor)
        logger.info(f"Created doctor {doctor.id}")
        return doctor

    def update_doctor(self, doctor_id: int, update_data: DoctorUpdate) -> Doctor:
        """Update doctor"""
        doctor = self.get_doctor_by_id(doctor_id)
        changes = update_data.model_dump(exclude_unset=True)
        for key in ("first_name", "last_name", "specialization"):
            if key in changes and changes[key] is None:
                raise ValidationError.for_field(key, "can't be blank")

        hospital_id = changes.get("hospital_id", doctor.hospital_id)
        clinic_id = changes.get("clinic_id", doctor.clinic_id)
        self._check_facilities(hospital_id, clinic_id)

        for key, value in changes.items():
            setattr(doctor, key, value)
        doctor.updated_at = datetime.now()
        self.session.add(doctor)
        commit_or_raise(self.session, f"updating doctor {doctor_id}")
        self.session.refresh(doctor)
        return doctor

    def delete_doctor(self, doctor_id: int, now: datetime) -> None:
        """Delete doctor together with their past, non-completed appointments"""
        doctor = self.get_doctor_by_id(doctor_id)
        appointments = self.session.exec(select(Appointment).where(Appointment.doctor_id == doctor_id)).all()
        if any(a.appointment_date > now for a in appointments):
            raise ValidationError.for_field("base", "Doctor cannot be deleted because they have upcoming appointments")
        if any(a.status == COMPLETED for a in appointments):
            raise ValidationError.for_field("base", "Doctor cannot be deleted because they have completed appointments")

        for appointment in appointments:
            self.session.delete(appointment)
        self.session.delete(doctor)
        commit_or_raise(self.session, f"deleting doctor {doctor_id}")
        logger.info(f"Deleted doctor {doctor_id} and {len(appointments)} appointment(s)")

    def get_doctor_patients(self, doctor_id: int) -> List[Patient]:
        self.get_doctor_by_id(doctor_id)
        patient_ids = select(Appointment.patient_id).where(Appointment.doctor_id == doctor_id)
        return self.session.exec(
            select(Patient).where(Patient.id.in_(patient_ids)).order_by(Patient.last_name, Patient.first_name)
        ).all()

    def get_doctor_statistics(self, doctor_id: int, now: datetime) -> DoctorStatistics:
        doctor = self.get_doctor_by_id(doctor_id)
        base = select(func.count(Appointment.id)).where(Appointment.doctor_id == doctor_id)
        total = self.session.exec(base).one()
        completed = self.session.exec(base.where(Appointment.status == COMPLETED)).one()
        upcoming = self.session.exec(base.where(Appointment.appointment_date > now)).one()
        unique_patients = self.session.exec(
            select(func.count(func.distinct(Appointment.patient_id))).where(Appointment.doctor_id == doctor_id)
        ).one()
        return DoctorStatistics(
            total_appointments=total,
            completed_appointments=completed,
            upcoming_appointments=upcoming,
            unique_patients=unique_patients,
            years_of_experience=doctor.years_of_experience,
            specialization=doctor.specialization,
        )

    def _check_facilities(self, hospital_id: Optional[int], clinic_id: Optional[int]) -> None:
        if hospital_id is None and clinic_id is None:
            raise ValidationError.for_field("base", "Doctor must belong to a hospital or a clinic")
        if hospital_id is not None and not self.session.get(Hospital, hospital_id):
            raise NotFoundError("Hospital", hospital_id)
        if clinic_id is not None and not self.session.get(Clinic, clinic_id):
            raise NotFoundError("Clinic", clinic_id)


def _parse_day(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError.for_field("available_date", "must use YYYY-MM-DD format")
