from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Any, Dict, List, Optional
import logging

from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto, AppointmentFilters
from ..ports.clock import Clock
from ..ports.directory_repo import DirectoryRepository
from ..scheduling import lifecycle
from ..scheduling.intervals import Conflict, TimeInterval, find_overlapping, interval_of, to_naive_local
from ..scheduling.lifecycle import Operation
from ..scheduling.policy import SchedulingPolicy
from ..scheduling.slots import available_slots, day_window
from ..scheduling.statistics import StatsSummary, summarize
from ...exceptions import ConflictError, FieldError, NotFoundError, ValidationError
from ...infrastructure.clock.system_clock import SystemClock

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass
class AppointmentsService:
    """Scheduling engine: booking validation, double-booking checks, status lifecycle,
    slot availability and statistics. Stateless between calls; all state lives in ``repo``."""

    repo: AppointmentsRepository
    directory: DirectoryRepository
    clock: Clock = field(default_factory=SystemClock)
    policy: SchedulingPolicy = field(default_factory=SchedulingPolicy.from_settings)

    # ---- reads ----

    def get(self, appointment_id: int) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFoundError("Appointment", appointment_id)
        return appt

    def list(self, filters: Optional[AppointmentFilters] = None) -> List[AppointmentDto]:
        return self.repo.list(filters or AppointmentFilters())

    def upcoming(self, filters: Optional[AppointmentFilters] = None) -> List[AppointmentDto]:
        filters = filters or AppointmentFilters()
        filters.starts_after = self.clock.now()
        return self.repo.list(filters)

    def past(self, filters: Optional[AppointmentFilters] = None) -> List[AppointmentDto]:
        filters = filters or AppointmentFilters()
        filters.starts_before = self.clock.now()
        return self.repo.list(filters)

    def can_be_cancelled(self, appt: AppointmentDto) -> bool:
        return lifecycle.can_be_cancelled(appt, self.clock.now(), self.policy.cancellation_notice)

    def can_be_rescheduled(self, appt: AppointmentDto) -> bool:
        return lifecycle.can_be_rescheduled(appt)

    # ---- overlap validation ----

    def find_conflicts(self, doctor_id: int, patient_id: int, start: datetime, duration_minutes: int,
                       exclude_appointment_id: Optional[int] = None) -> List[Conflict]:
        """Both schedules are always checked so the caller sees every conflict at once."""
        candidate = TimeInterval.from_duration(to_naive_local(start), duration_minutes)
        conflicts = []
        doctor_busy = self.repo.find_active_for_doctor(doctor_id, candidate.start, candidate.end)
        for a in find_overlapping(candidate, doctor_busy, exclude_appointment_id):
            conflicts.append(Conflict("doctor", a.id, interval_of(a)))
        patient_busy = self.repo.find_active_for_patient(patient_id, candidate.start, candidate.end)
        for a in find_overlapping(candidate, patient_busy, exclude_appointment_id):
            conflicts.append(Conflict("patient", a.id, interval_of(a)))
        return conflicts

    def validate_candidate(self, doctor_id: int, patient_id: int, start: datetime, duration_minutes: int,
                           exclude_appointment_id: Optional[int] = None) -> None:
        conflicts = self.find_conflicts(doctor_id, patient_id, start, duration_minutes, exclude_appointment_id)
        if conflicts:
            logger.warning(
                f"Rejected booking doctor={doctor_id} patient={patient_id} at {start}: "
                f"{len(conflicts)} conflict(s)"
            )
            raise ConflictError(conflicts)

    def conflicts_for(self, appointment_id: int) -> List[AppointmentDto]:
        """Active appointments of the same doctor overlapping an existing appointment."""
        appt = self.get(appointment_id)
        window = interval_of(appt)
        busy = self.repo.find_active_for_doctor(appt.doctor_id, window.start, window.end)
        return find_overlapping(window, busy, exclude_id=appt.id)

    # ---- writes ----

    def book(self, doctor_id: int, patient_id: int, appointment_date: datetime,
             duration_minutes: Optional[int] = None, status: str = lifecycle.SCHEDULED,
             notes: Optional[str] = None, appointment_type: Optional[str] = None) -> AppointmentDto:
        if duration_minutes is None:
            duration_minutes = self.policy.default_duration_minutes
        if appointment_date is not None:
            appointment_date = to_naive_local(appointment_date)
        self._validate_fields(appointment_date, duration_minutes, status, appointment_type)
        self._ensure_participants(doctor_id, patient_id)

        with self.repo.reserve(doctor_id, patient_id):
            if lifecycle.is_active(status):
                self.validate_candidate(doctor_id, patient_id, appointment_date, duration_minutes)
            appt = self.repo.create(
                doctor_id=doctor_id,
                patient_id=patient_id,
                appointment_date=appointment_date,
                duration_minutes=duration_minutes,
                status=status,
                notes=_normalize_notes(notes),
                appointment_type=appointment_type or None,
            )
        logger.info(f"Booked appointment {appt.id} doctor={doctor_id} patient={patient_id} at {appointment_date}")
        return appt

    def update(self, appointment_id: int, changes: Dict[str, Any]) -> AppointmentDto:
        """Field update (doctor, patient, date, duration, status, notes, type).

        A new status is only accepted when the lifecycle operation reaching it is legal."""
        current = self.get(appointment_id)
        doctor_id = changes.get("doctor_id") or current.doctor_id
        patient_id = changes.get("patient_id") or current.patient_id
        self._ensure_participants(doctor_id, patient_id)

        with self.repo.reserve(doctor_id, patient_id):
            current = self.get(appointment_id)
            now = self.clock.now()
            lifecycle.next_status(current, Operation.UPDATE, now)

            start = changes.get("appointment_date")
            start = to_naive_local(start) if start is not None else current.appointment_date
            duration = changes.get("duration_minutes")
            duration = current.duration_minutes if duration is None else duration
            status = changes.get("status") or current.status
            if status in lifecycle.STATUSES:
                status = lifecycle.status_change(current, status, now, self.policy.cancellation_notice)
            appointment_type = changes.get("appointment_type", _UNSET)
            if appointment_type is _UNSET:
                appointment_type = current.appointment_type

            # an unchanged start may legitimately be in the past already
            check_future = start != current.appointment_date
            self._validate_fields(start, duration, status, appointment_type, check_future=check_future)
            if lifecycle.is_active(status):
                self.validate_candidate(doctor_id, patient_id, start, duration, exclude_appointment_id=current.id)

            fields = {
                "doctor_id": doctor_id,
                "patient_id": patient_id,
                "appointment_date": start,
                "duration_minutes": duration,
                "status": status,
                "appointment_type": appointment_type or None,
            }
            if "notes" in changes:
                fields["notes"] = _normalize_notes(changes["notes"])
            updated = self.repo.update(current.id, **fields)
        logger.info(f"Updated appointment {appointment_id}")
        return updated

    def transition(self, appointment_id: int, operation: Any,
                   params: Optional[Dict[str, Any]] = None) -> Optional[AppointmentDto]:
        op = Operation.parse(operation)
        if op is Operation.RESCHEDULE:
            params = params or {}
            return self.reschedule(appointment_id, params.get("appointment_date"), params.get("duration_minutes"))
        if op is Operation.DELETE:
            self.delete(appointment_id)
            return None
        if op is Operation.UPDATE:
            return self.update(appointment_id, params or {})

        appt = self.get(appointment_id)
        with self.repo.reserve(appt.doctor_id, appt.patient_id):
            appt = self.get(appointment_id)
            new_status = lifecycle.next_status(appt, op, self.clock.now(), self.policy.cancellation_notice)
            updated = self.repo.update(appt.id, status=new_status)
        logger.info(f"Appointment {appointment_id}: {appt.status} -> {new_status} ({op.value})")
        return updated

    def confirm(self, appointment_id: int) -> AppointmentDto:
        return self.transition(appointment_id, Operation.CONFIRM)

    def cancel(self, appointment_id: int) -> AppointmentDto:
        return self.transition(appointment_id, Operation.CANCEL)

    def complete(self, appointment_id: int) -> AppointmentDto:
        return self.transition(appointment_id, Operation.COMPLETE)

    def mark_no_show(self, appointment_id: int) -> AppointmentDto:
        return self.transition(appointment_id, Operation.NO_SHOW)

    def reschedule(self, appointment_id: int, appointment_date: Optional[datetime],
                   duration_minutes: Optional[int] = None) -> AppointmentDto:
        if appointment_date is None:
            raise ValidationError.for_field("appointment_date", "can't be blank")
        appointment_date = to_naive_local(appointment_date)
        appt = self.get(appointment_id)
        with self.repo.reserve(appt.doctor_id, appt.patient_id):
            appt = self.get(appointment_id)
            new_status = lifecycle.next_status(appt, Operation.RESCHEDULE, self.clock.now())
            duration = appt.duration_minutes if duration_minutes is None else duration_minutes
            self._validate_fields(appointment_date, duration, new_status, appt.appointment_type)
            self.validate_candidate(appt.doctor_id, appt.patient_id, appointment_date, duration,
                                    exclude_appointment_id=appt.id)
            updated = self.repo.update(
                appt.id, appointment_date=appointment_date, duration_minutes=duration, status=new_status
            )
        logger.info(f"Rescheduled appointment {appointment_id} to {appointment_date}")
        return updated

    def delete(self, appointment_id: int) -> None:
        appt = self.get(appointment_id)
        lifecycle.next_status(appt, Operation.DELETE, self.clock.now())
        self.repo.delete(appt.id)
        logger.info(f"Deleted appointment {appointment_id}")

    # ---- availability & statistics ----

    def available_slots(self, doctor_id: int, day: date) -> List[datetime]:
        if not self.directory.doctor_exists(doctor_id):
            raise NotFoundError("Doctor", doctor_id)
        return available_slots(day, self.busy_intervals(doctor_id, day, day), self.policy.grid)

    def busy_intervals(self, doctor_id: int, start_day: date, end_day: date) -> List[TimeInterval]:
        """Active intervals of the doctor touching any day in [start_day, end_day]."""
        window_start = day_window(start_day).start
        window_end = day_window(end_day).end
        busy = self.repo.find_active_for_doctor(doctor_id, window_start, window_end)
        return [interval_of(a) for a in sorted(busy, key=lambda a: a.appointment_date)]

    def statistics(self, filters: Optional[AppointmentFilters] = None) -> StatsSummary:
        filters = filters or AppointmentFilters()
        rows = self.repo.list(AppointmentFilters(doctor_id=filters.doctor_id, patient_id=filters.patient_id))
        return summarize(rows, self.clock.now().date())

    # ---- helpers ----

    def _ensure_participants(self, doctor_id: int, patient_id: int) -> None:
        if not self.directory.doctor_exists(doctor_id):
            raise NotFoundError("Doctor", doctor_id)
        if not self.directory.patient_exists(patient_id):
            raise NotFoundError("Patient", patient_id)

    def _validate_fields(self, appointment_date: Optional[datetime], duration_minutes: Any, status: Any,
                         appointment_type: Optional[str], check_future: bool = True) -> None:
        errors = []
        if appointment_date is None:
            errors.append(FieldError("appointment_date", "can't be blank"))
        elif appointment_date < self.policy.earliest_appointment_date:
            errors.append(FieldError(
                "appointment_date",
                f"must not be before {self.policy.earliest_appointment_date.date().isoformat()}",
            ))
        elif check_future and status != lifecycle.COMPLETED and appointment_date <= self.clock.now():
            errors.append(FieldError("appointment_date", "must be in the future"))

        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
            errors.append(FieldError("duration_minutes", "must be an integer"))
        elif not 0 < duration_minutes <= self.policy.max_duration_minutes:
            errors.append(FieldError(
                "duration_minutes", f"must be between 1 and {self.policy.max_duration_minutes} minutes"
            ))

        if status not in lifecycle.STATUSES:
            errors.append(FieldError("status", f"{status} is not a valid status"))
        if appointment_type and appointment_type not in lifecycle.APPOINTMENT_TYPES:
            errors.append(FieldError("appointment_type", "must be a valid appointment type"))

        if errors:
            raise ValidationError(errors)


def _normalize_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    notes = notes.strip()
    return notes or None
