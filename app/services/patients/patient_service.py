# app/services/patient_service.py
from typing import List, Optional
from sqlmodel import Session, select, or_
from sqlalchemy import extract
from datetime import date, datetime
import logging

from app.db.models import Appointment, Doctor, Patient
from app.schemas import PatientCreate, PatientUpdate, PatientFilters
from app.application.scheduling.lifecycle import COMPLETED
from app.exceptions import NotFoundError, ValidationError
from app.utils import commit_or_raise, ensure_unique

logger = logging.getLogger(__name__)

AGE_GROUPS = ("minor", "adult", "senior")

def _years_ago(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # Feb 29 on a non-leap target year
        return today.replace(year=today.year - years, day=28)

class PatientService:
    def __init__(self, session: Session):
        self.session = session

    def get_patient_by_id(self, patient_id: int) -> Patient:
        patient = self.session.exec(select(Patient).where(Patient.id == patient_id)).first()
        if not patient:
            raise NotFoundError("Patient", patient_id)
        return patient

    def get_all_patients(self, filters: Optional[PatientFilters] = None, skip: int = 0, limit: int = 100,
                         today: Optional[date] = None) -> List[Patient]:
        query = select(Patient)
        today = today or date.today()

        if filters:
            if filters.search:
                term = f"%{filters.search}%"
                query = query.where(or_(
                    Patient.first_name.ilike(term),
                    Patient.last_name.ilike(term),
                    Patient.email.ilike(term),
                ))
            if filters.email:
                query = query.where(Patient.email == filters.email.strip().lower())
            if filters.age_group:
                if filters.age_group not in AGE_GROUPS:
                    raise ValidationError.for_field("age_group", f"must be one of: {', '.join(AGE_GROUPS)}")
                adult_from = _years_ago(today, 18)
                senior_from = _years_ago(today, 65)
                if filters.age_group == "minor":
                    query = query.where(Patient.date_of_birth > adult_from)
                elif filters.age_group == "adult":
                    query = query.where(Patient.date_of_birth > senior_from, Patient.date_of_birth <= adult_from)
                else:
                    query = query.where(Patient.date_of_birth <= senior_from)
            if filters.birth_year is not None:
                query = query.where(extract("year", Patient.date_of_birth) == filters.birth_year)

        return self.session.exec(
            query.order_by(Patient.last_name, Patient.first_name).offset(skip).limit(limit)
        ).all()

    def create_patient(self, patient_data: PatientCreate) -> Patient:
        ensure_unique(self.session, Patient, "email", patient_data.email)
        patient = Patient(**patient_data.model_dump())
        self.session.add(patient)
        commit_or_raise(self.session, "creating patient")
        self.session.refresh(patient)
        logger.info(f"Created patient {patient.id}")
        return patient

    def update_patient(self, patient_id: int, update_data: PatientUpdate) -> Patient:
        patient = self.get_patient_by_id(patient_id)
        changes = update_data.model_dump(exclude_unset=True)
        for key in ("first_name", "last_name", "date_of_birth", "email"):
            if key in changes and changes[key] is None:
                raise ValidationError.for_field(key, "can't be blank")
        if "email" in changes:
            ensure_unique(self.session, Patient, "email", changes["email"], exclude_id=patient_id)

        for key, value in changes.items():
            setattr(patient, key, value)
        patient.updated_at = datetime.now()
        self.session.add(patient)
        commit_or_raise(self.session, f"updating patient {patient_id}")
        self.session.refresh(patient)
        return patient

    def delete_patient(self, patient_id: int, now: datetime) -> None:
        """Delete patient together with their past, non-completed appointments"""
        patient = self.get_patient_by_id(patient_id)
        appointments = self.session.exec(select(Appointment).where(Appointment.patient_id == patient_id)).all()
        if any(a.appointment_date > now for a in appointments):
            raise ValidationError.for_field("base", "Patient cannot be deleted because they have upcoming appointments")
        if any(a.status == COMPLETED for a in appointments):
            raise ValidationError.for_field("base", "Patient cannot be deleted because they have completed appointments")

        for appointment in appointments:
            self.session.delete(appointment)
        self.session.delete(patient)
        commit_or_raise(self.session, f"deleting patient {patient_id}")
        logger.info(f"Deleted patient {patient_id}")

    def get_patient_doctors(self, patient_id: int) -> List[Doctor]:
        self.get_patient_by_id(patient_id)
        doctor_ids = select(Appointment.doctor_id).where(Appointment.patient_id == patient_id)
        return self.session.exec(
            select(Doctor).where(Doctor.id.in_(doctor_ids)).order_by(Doctor.last_name, Doctor.first_name)
        ).all()
