from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, List

from .intervals import TimeInterval


@dataclass(frozen=True)
class SlotGrid:
    """Bookable start times: every ``interval_minutes`` from ``day_start`` up to, not including, ``day_end``."""

    day_start: time = time(9, 0)
    day_end: time = time(17, 0)
    interval_minutes: int = 30

    def __post_init__(self):
        if self.interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")

    def slot_times(self, day: date) -> List[datetime]:
        step = timedelta(minutes=self.interval_minutes)
        current = datetime.combine(day, self.day_start)
        end = datetime.combine(day, self.day_end)
        slots = []
        while current < end:
            slots.append(current)
            current += step
        return slots


def day_window(day: date) -> TimeInterval:
    start = datetime.combine(day, time.min)
    return TimeInterval(start, start + timedelta(days=1))


def available_slots(day: date, busy: Iterable[TimeInterval], grid: SlotGrid = SlotGrid()) -> List[datetime]:
    busy = list(busy)
    return [slot for slot in grid.slot_times(day) if not any(b.contains(slot) for b in busy)]
