#!/usr/bin/env python3
"""
Tests for per-day environment normalization
"""

from datetime import date, time

from dayplan.scheduling.core.constants import MealType, Profile
from dayplan.scheduling.core.environment import TimeWindow, normalize_environment, split_wrapping_window
from dayplan.scheduling.core.task import MealOffsets, UserSettings

MONDAY = date(2025, 3, 17)
SATURDAY = date(2025, 3, 22)


def test_default_meal_windows():
    environment = normalize_environment(MONDAY, UserSettings(), Profile.ADULT)

    assert environment.meal_window(MealType.BREAKFAST) == TimeWindow(420, 510)
    assert environment.meal_window(MealType.LUNCH) == TimeWindow(720, 840)
    assert environment.meal_window(MealType.DINNER) == TimeWindow(1080, 1230)


def test_meal_offsets_are_clamped():
    settings = UserSettings(meal_offsets=MealOffsets(breakfast=45, lunch=-15, dinner=-90))
    environment = normalize_environment(MONDAY, settings, Profile.ADULT)

    assert environment.meal_window(MealType.BREAKFAST) == TimeWindow(450, 540)
    assert environment.meal_window(MealType.LUNCH) == TimeWindow(705, 825)
    assert environment.meal_window(MealType.DINNER) == TimeWindow(1050, 1200)


def test_school_window_only_binds_for_children_on_weekdays():
    adult = normalize_environment(MONDAY, UserSettings(), Profile.ADULT)
    child = normalize_environment(MONDAY, UserSettings(), Profile.CHILD)
    weekend = normalize_environment(SATURDAY, UserSettings(), Profile.CHILD)

    assert not adult.school_applies
    assert not adult.overlaps_school(600, 615)

    assert child.school_applies
    assert child.school_windows == [TimeWindow(510, 795)]
    assert child.overlaps_school(780, 795)
    assert not child.overlaps_school(795, 810)

    assert weekend.is_weekend
    assert not weekend.school_applies
    assert not weekend.overlaps_school(600, 615)


def test_school_override():
    settings = UserSettings(school_start=time(9, 0), school_end=time(14, 0))
    environment = normalize_environment(MONDAY, settings, Profile.CHILD)
    assert environment.school_windows == [TimeWindow(540, 840)]


def test_sleep_window_wraps_midnight():
    environment = normalize_environment(MONDAY, UserSettings(), Profile.ADULT)

    assert environment.sleep_windows == [TimeWindow(0, 420), TimeWindow(1380, 1440)]
    assert environment.overlaps_sleep(1380, 1395)
    assert environment.overlaps_sleep(405, 420)
    assert not environment.overlaps_sleep(420, 435)


def test_split_wrapping_window():
    assert split_wrapping_window(60, 480) == [TimeWindow(60, 480)]
    assert split_wrapping_window(1320, 360) == [TimeWindow(0, 360), TimeWindow(1320, 1440)]
    assert split_wrapping_window(600, 600) == []



def test_work_window_from_settings():
    assert normalize_environment(MONDAY, UserSettings(), Profile.ADULT).work_window == TimeWindow(540, 1080)
    night_shift = UserSettings(work_start=time(22, 0), work_end=time(6, 0))
    assert normalize_environment(MONDAY, night_shift, Profile.ADULT).work_window is None


def test_activity_target_defaults_by_profile():
    assert normalize_environment(MONDAY, UserSettings(), Profile.ADULT).activity_target_minutes == 0
    assert normalize_environment(MONDAY, UserSettings(), Profile.CHILD).activity_target_minutes == 60
    settings = UserSettings(activity_target_minutes=90)
    assert normalize_environment(MONDAY, settings, Profile.ADULT).activity_target_minutes == 90


def test_time_window_is_half_open():
    window = TimeWindow(720, 840)
    assert window.contains(720, 840)
    assert not window.contains(705, 735)
    assert not window.overlaps(840, 855)
    assert window.overlaps(825, 855)
