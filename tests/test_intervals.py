from dataclasses import dataclass
from datetime import datetime, timezone

from app.application.scheduling.intervals import TimeInterval, find_overlapping, interval_of, to_naive_local


@dataclass
class Appt:
    id: int
    appointment_date: datetime
    duration_minutes: int


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 1, 10, hour, minute)


def test_back_to_back_intervals_do_not_overlap():
    first = TimeInterval.from_duration(at(9), 30)
    second = TimeInterval.from_duration(at(9, 30), 30)
    assert not first.overlaps(second)
    assert not second.overlaps(first)


def test_one_minute_overlap_is_detected_both_ways():
    first = TimeInterval.from_duration(at(9), 30)
    second = TimeInterval.from_duration(at(9, 29), 30)
    assert first.overlaps(second)
    assert second.overlaps(first)


def test_enclosed_interval_overlaps():
    outer = TimeInterval.from_duration(at(9), 120)
    inner = TimeInterval.from_duration(at(10), 15)
    assert outer.overlaps(inner)
    assert inner.overlaps(outer)


def test_contains_is_half_open():
    interval = TimeInterval.from_duration(at(9), 30)
    assert interval.contains(at(9))
    assert interval.contains(at(9, 29))
    assert not interval.contains(at(9, 30))


def test_find_overlapping_skips_excluded_id():
    appts = [Appt(1, at(9), 30), Appt(2, at(9, 30), 30), Appt(3, at(9, 15), 30)]
    candidate = TimeInterval.from_duration(at(9, 15), 30)
    found = find_overlapping(candidate, appts, exclude_id=3)
    assert [a.id for a in found] == [1, 2]


def test_interval_of_uses_duration():
    interval = interval_of(Appt(1, at(9), 45))
    assert interval.end == at(9, 45)
    assert interval.to_dict() == {"start": "2024-01-10T09:00:00", "end": "2024-01-10T09:45:00"}


def test_to_naive_local_strips_timezone():
    aware = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)
    naive = to_naive_local(aware)
    assert naive.tzinfo is None
    assert naive == aware.astimezone().replace(tzinfo=None)
    assert to_naive_local(at(9)) == at(9)
