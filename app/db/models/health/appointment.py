# app/db/models/health/appointment.py
from typing import Optional
from sqlalchemy import CheckConstraint, Index
from sqlmodel import SQLModel, Field
from datetime import datetime

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'completed', 'cancelled', 'no_show')",
            name="appointments_status_check",
        ),
        CheckConstraint(
            "duration_minutes > 0 AND duration_minutes <= 480",
            name="appointments_duration_check",
        ),
        Index("index_appointments_on_doctor_and_date", "doctor_id", "appointment_date"),
        Index("index_appointments_on_patient_and_date", "patient_id", "appointment_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="doctors.id")
    patient_id: int = Field(foreign_key="patients.id")
    appointment_date: datetime = Field(index=True)
    duration_minutes: int = Field(default=30)
    status: str = Field(default="scheduled", index=True)
    notes: Optional[str] = None
    appointment_type: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
