# app/schemas/patient.py
from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import date, datetime

from ...utils import EMAIL_REGEX, PHONE_REGEX, age_group, age_on, normalize_phone, titleize

def _check_date_of_birth(v: date) -> date:
    today = date.today()
    if v > today:
        raise ValueError('Date of birth cannot be in the future')
    if today.year - v.year > 150:
        raise ValueError('Date of birth is too far in the past')
    return v

class PatientBase(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date
    email: str = Field(max_length=255)
    phone: Optional[str] = None

    @validator('first_name', 'last_name')
    def normalize_names(cls, v):
        if v is not None:
            if not v.strip():
                raise ValueError("can't be blank")
            return titleize(v)
        return v

    @validator('email')
    def validate_email(cls, v):
        if v is not None:
            v = v.strip().lower()
            if not EMAIL_REGEX.match(v):
                raise ValueError('must be a valid email address')
        return v

    @validator('phone')
    def validate_phone(cls, v):
        if v is not None:
            if not PHONE_REGEX.match(v):
                raise ValueError('must be a valid phone number')
            return normalize_phone(v)
        return v

    @validator('date_of_birth')
    def validate_date_of_birth(cls, v):
        if v is not None:
            return _check_date_of_birth(v)
        return v

class PatientCreate(PatientBase):
    pass

class PatientUpdate(PatientBase):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    email: Optional[str] = Field(None, max_length=255)

class PatientResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    full_name: str
    date_of_birth: date
    age: int
    age_group: str
    email: str
    phone: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, p, today: Optional[date] = None) -> "PatientResponse":
        age = age_on(p.date_of_birth, today or date.today())
        return cls(
            id=p.id,
            first_name=p.first_name,
            last_name=p.last_name,
            full_name=p.full_name,
            date_of_birth=p.date_of_birth,
            age=age,
            age_group=age_group(age),
            email=p.email,
            phone=p.phone,
            created_at=p.created_at,
            updated_at=p.updated_at,
        )

class PatientFilters(BaseModel):
    search: Optional[str] = None
    email: Optional[str] = None
    age_group: Optional[str] = None  # minor | adult | senior
    birth_year: Optional[int] = None
