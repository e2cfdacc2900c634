# app/db/models/directory/facility.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class FacilityBase(SQLModel):
    name: str = Field(unique=True, index=True)
    address: str
    phone: str = Field(unique=True)
    email: str = Field(unique=True)
    registration_number: str = Field(unique=True)
    website: Optional[str] = None
    active: bool = Field(default=True)
    status: str = Field(default="active")
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class Hospital(FacilityBase, table=True):
    __tablename__ = "hospitals"
    id: Optional[int] = Field(default=None, primary_key=True)
    bed_capacity: Optional[int] = None
    emergency_services: bool = Field(default=False)


class Clinic(FacilityBase, table=True):
    __tablename__ = "clinics"
    id: Optional[int] = Field(default=None, primary_key=True)
    accepts_insurance: bool = Field(default=False)
    accepts_new_patients: bool = Field(default=True)
    accepts_walk_ins: bool = Field(default=False)
