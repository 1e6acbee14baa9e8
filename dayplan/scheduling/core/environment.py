"""
Per-day environment derived from user settings: meal, school, sleep and
work windows on the minute-of-day axis.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from .constants import (
    ACTIVITY_TARGET_MINUTES, CHILD_SCHOOL_WINDOW, DEFAULT_MEAL_WINDOWS,
    MEAL_OFFSET_LIMIT_MINUTES, MINUTES_PER_DAY, MealType, Profile
)
from .task import UserSettings
from ..utils.time_utils import get_timezone, parse_hhmm

logger = logging.getLogger(__name__)


class TimeWindow:
    """Half-open [start_minute, end_minute) interval within one day."""
    def __init__(self, start_minute: int, end_minute: int):
        self.start_minute = start_minute
        self.end_minute = end_minute

    def overlaps(self, start_minute: int, end_minute: int) -> bool:
        return start_minute < self.end_minute and end_minute > self.start_minute

    def contains(self, start_minute: int, end_minute: int) -> bool:
        return start_minute >= self.start_minute and end_minute <= self.end_minute

    def __eq__(self, other):
        return (isinstance(other, TimeWindow)
                and (self.start_minute, self.end_minute) == (other.start_minute, other.end_minute))

    def __repr__(self):
        return f"TimeWindow({self.start_minute // 60:02d}:{self.start_minute % 60:02d}-" \
               f"{self.end_minute // 60:02d}:{self.end_minute % 60:02d})"


def _clamp_offset(offset: int) -> int:
    return max(-MEAL_OFFSET_LIMIT_MINUTES, min(MEAL_OFFSET_LIMIT_MINUTES, int(offset or 0)))


def split_wrapping_window(start_minute: int, end_minute: int) -> List[TimeWindow]:
    """A window that crosses midnight becomes its two in-day pieces."""
    if start_minute == end_minute:
        return []
    if start_minute < end_minute:
        return [TimeWindow(start_minute, end_minute)]
    return [TimeWindow(0, end_minute), TimeWindow(start_minute, MINUTES_PER_DAY)]


class DayEnvironment:
    """
    Read-only view of one day's hard windows. Built once per run.
    """
    def __init__(
        self,
        day: date,
        profile: Profile,
        meal_windows: Dict[MealType, TimeWindow],
        school_windows: List[TimeWindow],
        sleep_windows: List[TimeWindow],
        work_window: Optional[TimeWindow],
        activity_target_minutes: int,
        timezone,
        locale: str = "en",
    ):
        self.day = day
        self.profile = profile
        self.meal_windows = meal_windows
        self.school_windows = school_windows
        self.sleep_windows = sleep_windows
        self.work_window = work_window
        self.activity_target_minutes = activity_target_minutes
        self.timezone = timezone
        self.locale = locale

    @property
    def day_of_week(self) -> int:
        return self.day.weekday()

    @property
    def is_weekend(self) -> bool:
        return self.day_of_week >= 5

    @property
    def is_child(self) -> bool:
        return self.profile == Profile.CHILD

    @property
    def school_applies(self) -> bool:
        return self.is_child and not self.is_weekend and bool(self.school_windows)

    def meal_window(self, meal_type: MealType) -> TimeWindow:
        return self.meal_windows[meal_type]

    def overlaps_any_meal(self, start_minute: int, end_minute: int) -> bool:
        return any(window.overlaps(start_minute, end_minute) for window in self.meal_windows.values())

    def overlaps_school(self, start_minute: int, end_minute: int) -> bool:
        if not self.school_applies:
            return False
        return any(window.overlaps(start_minute, end_minute) for window in self.school_windows)

    def inside_school(self, start_minute: int, end_minute: int) -> bool:
        return any(window.contains(start_minute, end_minute) for window in self.school_windows)

    def overlaps_sleep(self, start_minute: int, end_minute: int) -> bool:
        return any(window.overlaps(start_minute, end_minute) for window in self.sleep_windows)


def normalize_environment(day: date, settings: UserSettings, profile: Profile) -> DayEnvironment:
    """
    Resolve user settings into the concrete windows for ``day``.

    Meal offsets are clamped to +/-30 minutes. The school window only exists
    for the child profile; whether it binds on a given day is decided by
    ``DayEnvironment.school_applies``.
    """
    meal_windows = {}
    for meal_type, (start, end) in DEFAULT_MEAL_WINDOWS.items():
        offset = _clamp_offset(settings.meal_offsets.for_meal(meal_type))
        meal_windows[meal_type] = TimeWindow(max(0, start + offset), min(MINUTES_PER_DAY, end + offset))

    school_windows = []
    if profile == Profile.CHILD:
        if settings.school_start and settings.school_end:
            school_windows = [TimeWindow(parse_hhmm(settings.school_start), parse_hhmm(settings.school_end))]
        else:
            school_windows = [TimeWindow(*CHILD_SCHOOL_WINDOW)]

    sleep_windows = split_wrapping_window(parse_hhmm(settings.sleep_start), parse_hhmm(settings.sleep_end))

    # Work hours are normalized for callers; no feature scores them
    work_window = None
    if settings.work_start and settings.work_end:
        work_start, work_end = parse_hhmm(settings.work_start), parse_hhmm(settings.work_end)
        if work_start < work_end:
            work_window = TimeWindow(work_start, work_end)

    if settings.activity_target_minutes is not None:
        activity_target = max(0, settings.activity_target_minutes)
    else:
        activity_target = ACTIVITY_TARGET_MINUTES[profile]

    environment = DayEnvironment(
        day=day,
        profile=profile,
        meal_windows=meal_windows,
        school_windows=school_windows,
        sleep_windows=sleep_windows,
        work_window=work_window,
        activity_target_minutes=activity_target,
        timezone=get_timezone(settings.timezone),
        locale=settings.locale or "en",
    )
    logger.debug(f"Environment for {day}: meals={meal_windows}, school={school_windows}, sleep={sleep_windows}")
    return environment
