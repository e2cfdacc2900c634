# app/schemas/appointment.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

class AppointmentCreate(BaseModel):
    doctor_id: int
    patient_id: int
    appointment_date: datetime
    duration_minutes: Optional[int] = None
    status: str = "scheduled"
    notes: Optional[str] = None
    appointment_type: Optional[str] = None

class AppointmentUpdate(BaseModel):
    doctor_id: Optional[int] = None
    patient_id: Optional[int] = None
    appointment_date: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    appointment_type: Optional[str] = None

class RescheduleRequest(BaseModel):
    appointment_date: datetime
    duration_minutes: Optional[int] = None

class BookingRequest(BaseModel):
    """Booking from a doctor's or patient's page; the other party comes from the URL."""
    doctor_id: Optional[int] = None
    patient_id: Optional[int] = None
    appointment_date: datetime
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    appointment_type: Optional[str] = None

class AppointmentResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    appointment_date: datetime
    end_time: datetime
    duration_minutes: int
    duration_in_hours: float
    status: str
    notes: Optional[str] = None
    appointment_type: Optional[str] = None
    can_be_cancelled: bool
    can_be_rescheduled: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_dto(cls, appt, can_be_cancelled: bool, can_be_rescheduled: bool) -> "AppointmentResponse":
        return cls(
            id=appt.id,
            doctor_id=appt.doctor_id,
            patient_id=appt.patient_id,
            appointment_date=appt.appointment_date,
            end_time=appt.end_time,
            duration_minutes=appt.duration_minutes,
            duration_in_hours=appt.duration_in_hours,
            status=appt.status,
            notes=appt.notes,
            appointment_type=appt.appointment_type,
            can_be_cancelled=can_be_cancelled,
            can_be_rescheduled=can_be_rescheduled,
            created_at=appt.created_at,
            updated_at=appt.updated_at,
        )

class CalendarEvent(BaseModel):
    id: int
    title: str
    start: str
    end: str
    color: str

class AvailableSlotsResponse(BaseModel):
    doctor_id: int
    date: str
    slots: List[datetime]

class BusyInterval(BaseModel):
    start: datetime
    end: datetime

class AvailabilityResponse(BaseModel):
    doctor_id: int
    start_date: str
    end_date: str
    busy_slots: List[BusyInterval]

class AppointmentStatistics(BaseModel):
    total: int = Field(ge=0)
    scheduled: int = Field(ge=0)
    confirmed: int = Field(ge=0)
    completed: int = Field(ge=0)
    cancelled: int = Field(ge=0)
    no_show: int = Field(ge=0)
    today: int = Field(ge=0)
    this_week: int = Field(ge=0)
    this_month: int = Field(ge=0)
