from datetime import date, datetime, time

import pytest

from app.application.scheduling.intervals import TimeInterval
from app.application.scheduling.slots import SlotGrid, available_slots, day_window

DAY = date(2024, 1, 10)


def test_default_grid_has_sixteen_starts():
    slots = SlotGrid().slot_times(DAY)
    assert len(slots) == 16
    assert slots[0] == datetime(2024, 1, 10, 9, 0)
    assert slots[-1] == datetime(2024, 1, 10, 16, 30)


def test_single_booking_removes_only_its_slot():
    busy = [TimeInterval.from_duration(datetime(2024, 1, 10, 9, 0), 30)]
    slots = available_slots(DAY, busy)
    assert len(slots) == 15
    assert datetime(2024, 1, 10, 9, 0) not in slots
    assert datetime(2024, 1, 10, 9, 30) in slots


def test_long_booking_blocks_every_slot_it_covers():
    busy = [TimeInterval.from_duration(datetime(2024, 1, 10, 10, 15), 60)]
    slots = available_slots(DAY, busy)
    assert datetime(2024, 1, 10, 10, 0) in slots
    assert datetime(2024, 1, 10, 10, 30) not in slots
    assert datetime(2024, 1, 10, 11, 0) not in slots
    assert datetime(2024, 1, 10, 11, 30) in slots


def test_availability_is_idempotent():
    busy = [TimeInterval.from_duration(datetime(2024, 1, 10, 13, 0), 90)]
    assert available_slots(DAY, busy) == available_slots(DAY, busy)


def test_custom_grid():
    grid = SlotGrid(day_start=time(8, 0), day_end=time(10, 0), interval_minutes=20)
    assert len(available_slots(DAY, [], grid)) == 6


def test_day_window_spans_midnight_to_midnight():
    window = day_window(DAY)
    assert window.start == datetime(2024, 1, 10)
    assert window.end == datetime(2024, 1, 11)


def test_grid_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        SlotGrid(interval_minutes=0)
