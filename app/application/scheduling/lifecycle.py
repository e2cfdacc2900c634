"""Appointment statuses and the operations that move between them."""
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, FrozenSet, Tuple

from ...exceptions import TransitionError, ValidationError

SCHEDULED = "scheduled"
CONFIRMED = "confirmed"
COMPLETED = "completed"
CANCELLED = "cancelled"
NO_SHOW = "no_show"

STATUSES = (SCHEDULED, CONFIRMED, COMPLETED, CANCELLED, NO_SHOW)
ACTIVE_STATUSES: FrozenSet[str] = frozenset({SCHEDULED, CONFIRMED})

APPOINTMENT_TYPES = ("consultation", "checkup", "follow_up", "emergency", "procedure")

MAX_DURATION_MINUTES = 480
DEFAULT_CANCELLATION_NOTICE = timedelta(hours=24)


class Operation(str, Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"
    COMPLETE = "complete"
    NO_SHOW = "no_show"
    RESCHEDULE = "reschedule"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: Any) -> "Operation":
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(op.value for op in cls)
            raise ValidationError.for_field("operation", f"must be one of: {allowed}")


# operation -> (statuses it may start from, resulting status)
STATUS_TRANSITIONS: Dict[Operation, Tuple[FrozenSet[str], str]] = {
    Operation.CONFIRM: (frozenset({SCHEDULED}), CONFIRMED),
    Operation.CANCEL: (ACTIVE_STATUSES, CANCELLED),
    Operation.COMPLETE: (ACTIVE_STATUSES, COMPLETED),
    Operation.NO_SHOW: (ACTIVE_STATUSES, NO_SHOW),
    Operation.RESCHEDULE: (ACTIVE_STATUSES, SCHEDULED),
}


def is_active(status: str) -> bool:
    return status in ACTIVE_STATUSES


def can_be_cancelled(appointment: Any, now: datetime,
                     notice: timedelta = DEFAULT_CANCELLATION_NOTICE) -> bool:
    return is_active(appointment.status) and appointment.appointment_date > now + notice


def can_be_rescheduled(appointment: Any) -> bool:
    return is_active(appointment.status)


def can_be_deleted(appointment: Any) -> bool:
    return appointment.status != COMPLETED


def can_be_edited(appointment: Any) -> bool:
    return appointment.status != COMPLETED


def next_status(appointment: Any, operation: Operation, now: datetime,
                notice: timedelta = DEFAULT_CANCELLATION_NOTICE) -> str:
    """Status the appointment moves to under ``operation``; raises TransitionError if illegal."""
    current = appointment.status
    if operation is Operation.DELETE:
        if not can_be_deleted(appointment):
            raise TransitionError(operation.value, current, "completed appointments cannot be deleted")
        return current
    if operation is Operation.UPDATE:
        if not can_be_edited(appointment):
            raise TransitionError(operation.value, current, "completed appointments cannot be edited")
        return current

    allowed_from, target = STATUS_TRANSITIONS[operation]
    if current not in allowed_from:
        expected = " or ".join(sorted(allowed_from))
        raise TransitionError(operation.value, current, f"only {expected} appointments allowed")
    if operation is Operation.CANCEL and not can_be_cancelled(appointment, now, notice):
        hours = int(notice.total_seconds() // 3600)
        raise TransitionError(
            operation.value, current,
            f"appointments can only be cancelled more than {hours} hours in advance",
        )
    return target

# status a field update may set directly -> operation that must allow it
_STATUS_OPERATIONS: Dict[str, Operation] = {
    CONFIRMED: Operation.CONFIRM,
    CANCELLED: Operation.CANCEL,
    COMPLETED: Operation.COMPLETE,
    NO_SHOW: Operation.NO_SHOW,
}


def status_change(appointment: Any, target: str, now: datetime,
                  notice: timedelta = DEFAULT_CANCELLATION_NOTICE) -> str:
    """Apply a requested status through the operation that reaches it."""
    if target == appointment.status:
        return target
    operation = _STATUS_OPERATIONS.get(target)
    if operation is None:
        raise TransitionError(
            Operation.UPDATE.value, appointment.status, f"status cannot be changed to {target}"
        )
    return next_status(appointment, operation, now, notice)
