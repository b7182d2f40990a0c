from datetime import time

import pytest

from slotbook.core.exceptions import ValidationException
from slotbook.models.provider import OperatingHours
from slotbook.services.slot_generator import (
    generate_slots,
    generate_slots_for_hours,
    iter_slot_starts,
)


def test_steps_from_open_until_service_and_buffer_fit():
    slots = generate_slots(time(9), time(12), 30, interval_minutes=15, buffer_minutes=15)
    assert slots[0] == time(9, 0)
    assert slots[-1] == time(11, 15)
    assert len(slots) == 10


def test_last_slot_may_end_exactly_at_close():
    slots = generate_slots(time(9), time(10), 45, interval_minutes=15, buffer_minutes=15)
    assert slots == [time(9, 0)]


def test_nothing_fits():
    assert generate_slots(time(9), time(9, 30), 30, interval_minutes=15, buffer_minutes=15) == []


def test_missing_hours_give_empty_sequence():
    assert generate_slots(None, time(17), 30) == []
    assert generate_slots(time(9), None, 30) == []


def test_generation_is_deterministic():
    first = generate_slots(time(9), time(17), 60, 30, 15)
    second = generate_slots(time(9), time(17), 60, 30, 15)
    assert first == second
    assert first == sorted(first)


def test_iterator_is_restartable():
    args = (time(9), time(11), 30, 15, 0)
    assert list(iter_slot_starts(*args)) == list(iter_slot_starts(*args))


@pytest.mark.parametrize(
    "duration,interval,buffer",
    [(0, 15, 15), (-30, 15, 15), (30, 0, 15), (30, 15, -5)],
)
def test_invalid_parameters_raise(duration, interval, buffer):
    with pytest.raises(ValidationException):
        generate_slots(time(9), time(17), duration, interval, buffer)


def test_closed_day_row_gives_no_slots():
    hours = OperatingHours(day_of_week=2, is_closed=True, open_time=time(9), close_time=time(17))
    assert generate_slots_for_hours(hours, 30, 15, 15) == []


def test_missing_day_row_gives_no_slots():
    assert generate_slots_for_hours(None, 30, 15, 15) == []


def test_open_day_row_uses_its_window():
    hours = OperatingHours(day_of_week=2, is_closed=False, open_time=time(9), close_time=time(10))
    assert generate_slots_for_hours(hours, 30, 15, 15) == [time(9, 0), time(9, 15)]
