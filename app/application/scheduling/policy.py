from dataclasses import dataclass, field
from datetime import datetime, time, timedelta

from .lifecycle import DEFAULT_CANCELLATION_NOTICE, MAX_DURATION_MINUTES
from .slots import SlotGrid


def _parse_clock(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


@dataclass(frozen=True)
class SchedulingPolicy:
    grid: SlotGrid = field(default_factory=SlotGrid)
    cancellation_notice: timedelta = DEFAULT_CANCELLATION_NOTICE
    default_duration_minutes: int = 30
    max_duration_minutes: int = MAX_DURATION_MINUTES
    earliest_appointment_date: datetime = datetime(2000, 1, 1)

    @classmethod
    def from_settings(cls, settings=None) -> "SchedulingPolicy":
        if settings is None:
            from ...config import settings
        return cls(
            grid=SlotGrid(
                day_start=_parse_clock(settings.SLOT_DAY_START),
                day_end=_parse_clock(settings.SLOT_DAY_END),
                interval_minutes=settings.SLOT_INTERVAL_MINUTES,
            ),
            cancellation_notice=timedelta(hours=settings.CANCELLATION_NOTICE_HOURS),
            default_duration_minutes=settings.DEFAULT_DURATION_MINUTES,
            earliest_appointment_date=datetime.strptime(settings.EARLIEST_APPOINTMENT_DATE, "%Y-%m-%d"),
        )
