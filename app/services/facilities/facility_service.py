# app/services/facility_service.py
from typing import List, Optional, Type, Union
from sqlmodel import Session, select
from pydantic import BaseModel
from datetime import datetime
import logging

from app.db.models import Clinic, Doctor, Hospital
from app.exceptions import NotFoundError, ValidationError
from app.utils import commit_or_raise, ensure_unique

logger = logging.getLogger(__name__)

Facility = Union[Hospital, Clinic]

UNIQUE_FIELDS = ("name", "phone", "email", "registration_number")
REQUIRED_FIELDS = ("name", "address", "phone", "email", "registration_number", "active", "status")

class FacilityService:
    """CRUD for one facility table (hospitals or clinics)."""

    def __init__(self, session: Session, model: Type[Facility]):
        self.session = session
        self.model = model
        self.label = model.__name__

    def _doctor_column(self):
        return Doctor.hospital_id if self.model is Hospital else Doctor.clinic_id

    def get_by_id(self, facility_id: int) -> Facility:
        facility = self.session.exec(select(self.model).where(self.model.id == facility_id)).first()
        if not facility:
            raise NotFoundError(self.label, facility_id)
        return facility

    def get_all(self, search: Optional[str] = None, active: Optional[bool] = None,
                skip: int = 0, limit: int = 100) -> List[Facility]:
        query = select(self.model)
        if search:
            query = query.where(self.model.name.ilike(f"%{search}%"))
        if active is not None:
            query = query.where(self.model.active == active)
        return self.session.exec(query.order_by(self.model.name).offset(skip).limit(limit)).all()

    def create(self, data: BaseModel) -> Facility:
        values = data.model_dump()
        for field in UNIQUE_FIELDS:
            ensure_unique(self.session, self.model, field, values.get(field))
        facility = self.model(**values)
        self.session.add(facility)
        commit_or_raise(self.session, f"creating {self.label.lower()}")
        self.session.refresh(facility)
        logger.info(f"Created {self.label.lower()} {facility.id}")
        return facility

    def update(self, facility_id: int, data: BaseModel) -> Facility:
        facility = self.get_by_id(facility_id)
        changes = data.model_dump(exclude_unset=True)
        for key in REQUIRED_FIELDS:
            if key in changes and changes[key] is None:
                raise ValidationError.for_field(key, "can't be blank")
        for field in UNIQUE_FIELDS:
            if field in changes:
                ensure_unique(self.session, self.model, field, changes[field], exclude_id=facility_id)

        for key, value in changes.items():
            setattr(facility, key, value)
        facility.updated_at = datetime.now()
        self.session.add(facility)
        commit_or_raise(self.session, f"updating {self.label.lower()} {facility_id}")
        self.session.refresh(facility)
        return facility

    def delete(self, facility_id: int) -> None:
        facility = self.get_by_id(facility_id)
        if self.session.exec(select(Doctor.id).where(self._doctor_column() == facility_id)).first() is not None:
            raise ValidationError.for_field("base", f"{self.label} still has doctors assigned")
        self.session.delete(facility)
        commit_or_raise(self.session, f"deleting {self.label.lower()} {facility_id}")
        logger.info(f"Deleted {self.label.lower()} {facility_id}")

    def get_doctors(self, facility_id: int) -> List[Doctor]:
        self.get_by_id(facility_id)
        return self.session.exec(
            select(Doctor).where(self._doctor_column() == facility_id).order_by(Doctor.last_name, Doctor.first_name)
        ).all()
