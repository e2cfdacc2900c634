from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable

from .lifecycle import CANCELLED, COMPLETED, CONFIRMED, NO_SHOW, SCHEDULED


@dataclass
class StatsSummary:
    total: int = 0
    scheduled: int = 0
    confirmed: int = 0
    completed: int = 0
    cancelled: int = 0
    no_show: int = 0
    today: int = 0
    this_week: int = 0
    this_month: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def summarize(appointments: Iterable[Any], today: date) -> StatsSummary:
    """Counts by status and by period. Weeks run Monday to Sunday."""
    week_start = today - timedelta(days=today.weekday())
    week_end = week_start + timedelta(days=6)

    stats = StatsSummary()
    for appt in appointments:
        stats.total += 1
        if appt.status in (SCHEDULED, CONFIRMED, COMPLETED, CANCELLED, NO_SHOW):
            setattr(stats, appt.status, getattr(stats, appt.status) + 1)
        day = appt.appointment_date.date()
        if day == today:
            stats.today += 1
        if week_start <= day <= week_end:
            stats.this_week += 1
        if (day.year, day.month) == (today.year, today.month):
            stats.this_month += 1
    return stats
