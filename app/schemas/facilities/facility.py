# app/schemas/facility.py
from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

from ...utils import EMAIL_REGEX, PHONE_REGEX, normalize_phone

FACILITY_STATUSES = ("active", "inactive", "suspended")

class FacilityBase(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    address: str = Field(min_length=1)
    phone: str
    email: str = Field(max_length=255)
    registration_number: str = Field(min_length=1, max_length=100)
    website: Optional[str] = Field(None, max_length=500)
    active: bool = True
    status: str = "active"
    description: Optional[str] = None

    @validator('name', 'address', 'registration_number')
    def strip_required(cls, v):
        if v is not None:
            if not v.strip():
                raise ValueError("can't be blank")
            return v.strip()
        return v

    @validator('phone')
    def validate_phone(cls, v):
        if v is not None:
            if not PHONE_REGEX.match(v):
                raise ValueError('must be a valid phone number')
            return normalize_phone(v)
        return v

    @validator('email')
    def validate_email(cls, v):
        if v is not None:
            v = v.strip().lower()
            if not EMAIL_REGEX.match(v):
                raise ValueError('must be a valid email address')
        return v

    @validator('status')
    def validate_status(cls, v):
        if v is not None and v not in FACILITY_STATUSES:
            raise ValueError(f'{v} is not a valid status')
        return v

class FacilityUpdate(FacilityBase):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = Field(None, max_length=255)
    registration_number: Optional[str] = Field(None, min_length=1, max_length=100)
    active: Optional[bool] = None
    status: Optional[str] = None

class FacilityResponse(BaseModel):
    id: int
    name: str
    address: str
    phone: str
    email: str
    registration_number: str
    website: Optional[str] = None
    active: bool
    status: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

# Hospitals
class HospitalCreate(FacilityBase):
    bed_capacity: Optional[int] = Field(None, ge=0)
    emergency_services: bool = False

class HospitalUpdate(FacilityUpdate):
    bed_capacity: Optional[int] = Field(None, ge=0)
    emergency_services: Optional[bool] = None

class HospitalResponse(FacilityResponse):
    bed_capacity: Optional[int] = None
    emergency_services: bool

# Clinics
class ClinicCreate(FacilityBase):
    accepts_insurance: bool = False
    accepts_new_patients: bool = True
    accepts_walk_ins: bool = False

class ClinicUpdate(FacilityUpdate):
    accepts_insurance: Optional[bool] = None
    accepts_new_patients: Optional[bool] = None
    accepts_walk_ins: Optional[bool] = None

class ClinicResponse(FacilityResponse):
    accepts_insurance: bool
    accepts_new_patients: bool
    accepts_walk_ins: bool
