from dataclasses import dataclass
from datetime import date, datetime

from app.application.scheduling.statistics import summarize

# Wednesday
TODAY = date(2030, 6, 12)


@dataclass
class Appt:
    status: str
    appointment_date: datetime


def test_counts_by_status_and_period():
    appts = [
        Appt("scheduled", datetime(2030, 6, 12, 10, 0)),
        Appt("confirmed", datetime(2030, 6, 10, 9, 0)),   # Monday, same week
        Appt("completed", datetime(2030, 6, 16, 15, 0)),  # Sunday, same week
        Appt("cancelled", datetime(2030, 6, 17, 9, 0)),   # next Monday
        Appt("no_show", datetime(2030, 5, 31, 9, 0)),     # previous month
    ]
    stats = summarize(appts, TODAY)
    assert stats.total == 5
    assert (stats.scheduled, stats.confirmed, stats.completed, stats.cancelled, stats.no_show) == (1, 1, 1, 1, 1)
    assert stats.today == 1
    assert stats.this_week == 3
    assert stats.this_month == 4


def test_empty_summary():
    assert summarize([], TODAY).to_dict() == {
        "total": 0,
        "scheduled": 0,
        "confirmed": 0,
        "completed": 0,
        "cancelled": 0,
        "no_show": 0,
        "today": 0,
        "this_week": 0,
        "this_month": 0,
    }
