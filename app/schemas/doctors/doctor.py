# app/schemas/doctor.py
from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

from ...utils import titleize

class DoctorBase(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    specialization: str = Field(min_length=1, max_length=100)
    years_of_experience: Optional[int] = Field(None, ge=0, le=80)
    hospital_id: Optional[int] = None
    clinic_id: Optional[int] = None

    @validator('first_name', 'last_name', 'specialization')
    def normalize_names(cls, v):
        if v is not None:
            if not v.strip():
                raise ValueError("can't be blank")
            return titleize(v)
        return v

class DoctorCreate(DoctorBase):
    pass

class DoctorUpdate(DoctorBase):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    specialization: Optional[str] = Field(None, min_length=1, max_length=100)

class DoctorResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    full_name: str
    display_name: str
    specialization: str
    years_of_experience: Optional[int] = None
    hospital_id: Optional[int] = None
    clinic_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, d) -> "DoctorResponse":
        return cls(
            id=d.id,
            first_name=d.first_name,
            last_name=d.last_name,
            full_name=d.full_name,
            display_name=d.display_name,
            specialization=d.specialization,
            years_of_experience=d.years_of_experience,
            hospital_id=d.hospital_id,
            clinic_id=d.clinic_id,
            created_at=d.created_at,
            updated_at=d.updated_at,
        )

class DoctorFilters(BaseModel):
    search: Optional[str] = None
    specialization: Optional[str] = None
    hospital_id: Optional[int] = None
    clinic_id: Optional[int] = None
    min_experience: Optional[int] = None
    available_date: Optional[str] = None  # YYYY-MM-DD
    works_at: Optional[str] = None  # hospital | clinic

class DoctorStatistics(BaseModel):
    total_appointments: int
    completed_appointments: int
    upcoming_appointments: int
    unique_patients: int
    years_of_experience: Optional[int] = None
    specialization: str
