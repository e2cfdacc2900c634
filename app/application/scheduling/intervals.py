"""Half-open time intervals and double-booking detection.

Two intervals ``[s, e)`` and ``[S, E)`` overlap iff ``s < E and S < e``.
Back-to-back bookings (one ends exactly when the other starts) do not overlap.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional


def to_naive_local(moment: datetime) -> datetime:
    """Appointments are stored as naive local time; aware inputs are converted."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


@dataclass(frozen=True)
class TimeInterval:
    start: datetime
    end: datetime

    @classmethod
    def from_duration(cls, start: datetime, duration_minutes: int) -> "TimeInterval":
        return cls(start, start + timedelta(minutes=duration_minutes))

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def interval_of(appointment: Any) -> TimeInterval:
    return TimeInterval.from_duration(appointment.appointment_date, appointment.duration_minutes)


@dataclass(frozen=True)
class Conflict:
    subject: str  # "doctor" or "patient"
    appointment_id: int
    interval: TimeInterval

    @property
    def message(self) -> str:
        return f"conflicts with {self.subject}'s existing appointment #{self.appointment_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "appointment_id": self.appointment_id,
            "start": self.interval.start.isoformat(),
            "end": self.interval.end.isoformat(),
            "message": self.message,
        }


def find_overlapping(candidate: TimeInterval, appointments: Iterable[Any],
                     exclude_id: Optional[int] = None) -> List[Any]:
    """Appointments whose interval overlaps ``candidate``, skipping ``exclude_id``."""
    return [
        a for a in appointments
        if (exclude_id is None or a.id != exclude_id) and interval_of(a).overlaps(candidate)
    ]
