#!/usr/bin/env python3
"""
Tests for the slot grid and wall-clock helpers
"""

from datetime import date, datetime, time

import pytest
import pytz

from dayplan.scheduling.core.constants import TaskCategory
from dayplan.scheduling.core.time_slot import build_time_grid
from dayplan.scheduling.utils.time_utils import (
    minute_of_day, parse_hhmm, to_local_naive, to_utc_naive, utc_naive_to_local
)

MONDAY = date(2025, 3, 17)


def test_grid_covers_the_whole_day():
    arena = build_time_grid(MONDAY)

    assert len(arena) == 96
    assert arena[0].start == datetime(2025, 3, 17, 0, 0)
    assert arena[95].end == datetime(2025, 3, 18, 0, 0)
    for previous, current in zip(arena.slots, arena.slots[1:]):
        assert previous.end == current.start
        assert current.index == previous.index + 1
    assert all(slot.is_free for slot in arena)


def test_grid_rejects_widths_that_do_not_divide_the_day():
    with pytest.raises(ValueError):
        build_time_grid(MONDAY, slot_minutes=7)
    with pytest.raises(ValueError):
        build_time_grid(MONDAY, slot_minutes=0)


def test_custom_slot_width():
    arena = build_time_grid(MONDAY, slot_minutes=30)
    assert len(arena) == 48
    assert arena[1].start_minute == 30
    assert arena[1].end_minute == 60


def test_occupy_marks_slots_and_refuses_double_booking():
    arena = build_time_grid(MONDAY)
    arena.occupy([40, 41], "task-1", TaskCategory.DEEP_WORK)

    assert arena[40].occupied_by == "task-1"
    assert arena[41].category == TaskCategory.DEEP_WORK
    assert arena.occupied_minutes() == 30
    assert 40 not in arena.free_indexes()

    with pytest.raises(ValueError):
        arena.occupy([41, 42], "task-2", TaskCategory.SOCIAL)
    # Nothing from the failed call was written
    assert arena[42].is_free


def test_neighbor_categories():
    arena = build_time_grid(MONDAY)
    arena.occupy([10], "a", TaskCategory.SOCIAL)
    arena.occupy([12], "b", TaskCategory.CREATIVE)

    assert arena.neighbor_categories(11) == [TaskCategory.SOCIAL, TaskCategory.CREATIVE]
    assert arena.neighbor_categories(0) == []


def test_index_lookup():
    arena = build_time_grid(MONDAY)

    assert arena.index_containing(datetime(2025, 3, 17, 17, 5)) == 68
    assert arena.index_containing(datetime(2025, 3, 18, 0, 0)) is None
    assert arena.index_containing(datetime(2025, 3, 16, 23, 59)) is None
    assert arena.nearest_index(datetime(2025, 3, 17, 17, 7)) == 68
    assert arena.nearest_index(datetime(2025, 3, 17, 17, 8)) == 69


def test_parse_hhmm():
    assert parse_hhmm("07:30") == 450
    assert parse_hhmm(time(23, 0)) == 1380
    with pytest.raises(ValueError):
        parse_hhmm("25:00")


def test_timezone_conversions():
    moscow = pytz.timezone("Europe/Moscow")
    aware = pytz.utc.localize(datetime(2025, 3, 17, 14, 0))

    assert to_local_naive(aware, moscow) == datetime(2025, 3, 17, 17, 0)
    assert to_local_naive(datetime(2025, 3, 17, 9, 0), moscow) == datetime(2025, 3, 17, 9, 0)
    assert to_utc_naive(aware) == datetime(2025, 3, 17, 14, 0)
    assert to_utc_naive(datetime(2025, 3, 17, 12, 0), moscow) == datetime(2025, 3, 17, 9, 0)
    assert to_utc_naive(datetime(2025, 3, 17, 12, 0)) == datetime(2025, 3, 17, 12, 0)
    assert utc_naive_to_local(datetime(2025, 3, 17, 9, 0), moscow) == datetime(2025, 3, 17, 12, 0)


def test_minute_of_day():
    assert minute_of_day(datetime(2025, 3, 17, 8, 30), MONDAY) == 510
    assert minute_of_day(datetime(2025, 3, 18, 0, 30), MONDAY) == 1470
