# app/db/models/health/doctor.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: str = Field(index=True)
    specialization: str = Field(index=True)
    years_of_experience: Optional[int] = None
    hospital_id: Optional[int] = Field(default=None, foreign_key="hospitals.id", index=True)
    clinic_id: Optional[int] = Field(default=None, foreign_key="clinics.id", index=True)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        return f"Dr. {self.full_name}"
