from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import List, Optional, Protocol
import datetime as dt
from datetime import datetime, timedelta


@dataclass
class AppointmentDto:
    id: int
    doctor_id: int
    patient_id: int
    appointment_date: datetime
    duration_minutes: int
    status: str
    notes: Optional[str]
    appointment_type: Optional[str]
    created_at: datetime
    updated_at: datetime

    @property
    def end_time(self) -> datetime:
        return self.appointment_date + timedelta(minutes=self.duration_minutes)

    @property
    def duration_in_hours(self) -> float:
        return self.duration_minutes / 60.0


@dataclass
class AppointmentFilters:
    date: Optional[dt.date] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    starts_after: Optional[datetime] = None
    starts_before: Optional[datetime] = None
    status: Optional[str] = None
    doctor_id: Optional[int] = None
    patient_id: Optional[int] = None
    appointment_type: Optional[str] = None
    min_duration: Optional[int] = None
    max_duration: Optional[int] = None
    search: Optional[str] = None
    newest_first: bool = False
    skip: int = 0
    limit: Optional[int] = None


class AppointmentsRepository(Protocol):
    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        ...

    def find_active_for_doctor(self, doctor_id: int, start: datetime, end: datetime) -> List[AppointmentDto]:
        """Scheduled/confirmed appointments of the doctor whose interval intersects [start, end)."""
        ...

    def find_active_for_patient(self, patient_id: int, start: datetime, end: datetime) -> List[AppointmentDto]:
        ...

    def list(self, filters: AppointmentFilters) -> List[AppointmentDto]:
        ...

    def create(self, doctor_id: int, patient_id: int, appointment_date: datetime, duration_minutes: int,
               status: str, notes: Optional[str], appointment_type: Optional[str]) -> AppointmentDto:
        ...

    def update(self, appointment_id: int, **fields) -> AppointmentDto:
        ...

    def delete(self, appointment_id: int) -> None:
        ...

    def reserve(self, doctor_id: int, patient_id: int) -> AbstractContextManager:
        """Serialise overlap-check-and-write for this doctor and this patient."""
        ...
