from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Iterator, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, or_, select

from .....db.models import Appointment, Doctor, Patient
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    AppointmentFilters,
)
from .....application.scheduling.intervals import TimeInterval, interval_of
from .....application.scheduling.lifecycle import ACTIVE_STATUSES, MAX_DURATION_MINUTES
from .....exceptions import PersistenceError
from .....infrastructure.locking.keyed_lock import KeyedLock

logger = logging.getLogger(__name__)

# Shared by every repository instance in the process (one instance per request)
booking_locks = KeyedLock()


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _appt_to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            doctor_id=a.doctor_id,
            patient_id=a.patient_id,
            appointment_date=a.appointment_date,
            duration_minutes=a.duration_minutes,
            status=a.status,
            notes=a.notes,
            appointment_type=a.appointment_type,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Error {action}: {e}")
            raise PersistenceError(f"Failed {action}") from e

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        return self._appt_to_dto(a) if a else None

    def _find_active(self, column, subject_id: int, start: datetime, end: datetime) -> List[AppointmentDto]:
        # no appointment outlasts MAX_DURATION_MINUTES, so earlier starts cannot reach the window
        lower = start - timedelta(minutes=MAX_DURATION_MINUTES)
        rows = self.session.exec(
            select(Appointment)
            .where(column == subject_id)
            .where(Appointment.status.in_(sorted(ACTIVE_STATUSES)))
            .where(Appointment.appointment_date > lower)
            .where(Appointment.appointment_date < end)
            .order_by(Appointment.appointment_date)
        ).all()
        window = TimeInterval(start, end)
        dtos = [self._appt_to_dto(r) for r in rows]
        return [d for d in dtos if interval_of(d).overlaps(window)]

    def find_active_for_doctor(self, doctor_id: int, start: datetime, end: datetime) -> List[AppointmentDto]:
        return self._find_active(Appointment.doctor_id, doctor_id, start, end)

    def find_active_for_patient(self, patient_id: int, start: datetime, end: datetime) -> List[AppointmentDto]:
        return self._find_active(Appointment.patient_id, patient_id, start, end)

    def list(self, filters: AppointmentFilters) -> List[AppointmentDto]:
        query = select(Appointment)
        if filters.date:
            day_start = datetime.combine(filters.date, time.min)
            query = query.where(Appointment.appointment_date >= day_start)
            query = query.where(Appointment.appointment_date < day_start + timedelta(days=1))
        if filters.start_date and filters.end_date:
            query = query.where(Appointment.appointment_date >= datetime.combine(filters.start_date, time.min))
            query = query.where(
                Appointment.appointment_date < datetime.combine(filters.end_date, time.min) + timedelta(days=1)
            )
        if filters.starts_after:
            query = query.where(Appointment.appointment_date > filters.starts_after)
        if filters.starts_before:
            query = query.where(Appointment.appointment_date < filters.starts_before)
        if filters.status:
            query = query.where(Appointment.status == filters.status)
        if filters.doctor_id is not None:
            query = query.where(Appointment.doctor_id == filters.doctor_id)
        if filters.patient_id is not None:
            query = query.where(Appointment.patient_id == filters.patient_id)
        if filters.appointment_type:
            query = query.where(Appointment.appointment_type == filters.appointment_type)
        if filters.min_duration is not None:
            query = query.where(Appointment.duration_minutes >= filters.min_duration)
        if filters.max_duration is not None:
            query = query.where(Appointment.duration_minutes <= filters.max_duration)
        if filters.search:
            term = f"%{filters.search}%"
            query = (
                query.join(Doctor, Doctor.id == Appointment.doctor_id)
                .join(Patient, Patient.id == Appointment.patient_id)
                .where(
                    or_(
                        Doctor.first_name.ilike(term),
                        Doctor.last_name.ilike(term),
                        Patient.first_name.ilike(term),
                        Patient.last_name.ilike(term),
                    )
                )
            )

        if filters.newest_first:
            query = query.order_by(Appointment.appointment_date.desc(), Appointment.id.desc())
        else:
            query = query.order_by(Appointment.appointment_date, Appointment.id)
        if filters.skip:
            query = query.offset(filters.skip)
        if filters.limit is not None:
            query = query.limit(filters.limit)
        return [self._appt_to_dto(r) for r in self.session.exec(query).all()]

    def create(self, doctor_id: int, patient_id: int, appointment_date: datetime, duration_minutes: int,
               status: str, notes: Optional[str], appointment_type: Optional[str]) -> AppointmentDto:
        appt = Appointment(
            doctor_id=doctor_id,
            patient_id=patient_id,
            appointment_date=appointment_date,
            duration_minutes=duration_minutes,
            status=status,
            notes=notes,
            appointment_type=appointment_type,
        )
        self.session.add(appt)
        self._commit("creating appointment")
        self.session.refresh(appt)
        return self._appt_to_dto(appt)

    def update(self, appointment_id: int, **fields) -> AppointmentDto:
        a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        if not a:
            raise PersistenceError(f"Appointment {appointment_id} disappeared during update")
        for key, value in fields.items():
            setattr(a, key, value)
        a.updated_at = datetime.now()
        self.session.add(a)
        self._commit(f"updating appointment {appointment_id}")
        self.session.refresh(a)
        return self._appt_to_dto(a)

    def delete(self, appointment_id: int) -> None:
        a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        if not a:
            return
        self.session.delete(a)
        self._commit(f"deleting appointment {appointment_id}")

    def _supports_row_locks(self) -> bool:
        return self.session.get_bind().dialect.name != "sqlite"

    @contextmanager
    def reserve(self, doctor_id: int, patient_id: int) -> Iterator[None]:
        """Overlap check and write for one doctor/patient pair run one at a time.

        In-process locks cover a single worker; on server databases the doctor and
        patient rows are also locked FOR UPDATE (doctor first, then patient) until
        the write commits, which serialises workers sharing the database.
        """
        with booking_locks.hold(f"doctor:{doctor_id}", f"patient:{patient_id}"):
            try:
                if self._supports_row_locks():
                    self.session.exec(select(Doctor.id).where(Doctor.id == doctor_id).with_for_update()).first()
                    self.session.exec(select(Patient.id).where(Patient.id == patient_id).with_for_update()).first()
                yield
            except Exception:
                self.session.rollback()
                raise
            else:
                # release row locks if the block wrote nothing
                if self.session.in_transaction():
                    self._commit("releasing reservation")
