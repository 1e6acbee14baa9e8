"""
Per-slot feature vector used by the utility model.

The order of the returned list is fixed and matches ``FEATURE_NAMES``.
"""

import math
from datetime import datetime
from typing import List, Optional

from ..core.constants import (
    DAILY_LOAD_RAMP_MINUTES, DAILY_LOAD_SOFT_LIMIT_MINUTES, DEADLINE_TAU_HOURS,
    HABIT_FALLOFF_MINUTES, TaskCategory
)
from ..core.environment import DayEnvironment
from ..core.task import ScheduleTask, SchedulerHistory, TaskMetadata
from ..core.time_slot import Slot, SlotArena
from ..utils.time_utils import to_local_naive
from .circadian import circadian_fit

ACTIVITY_CATEGORIES = (TaskCategory.RELAXING, TaskCategory.OUTDOOR_PLAY)


class FeatureContext:
    """Everything the extractor may look at for one (task, slot) pair."""
    def __init__(
        self,
        task: ScheduleTask,
        metadata: TaskMetadata,
        slot: Slot,
        arena: SlotArena,
        environment: DayEnvironment,
        history: Optional[SchedulerHistory] = None,
        scheduled_minutes: int = 0,
        activity_minutes: int = 0,
        deadline: Optional[datetime] = None,
    ):
        self.task = task
        self.metadata = metadata
        self.slot = slot
        self.arena = arena
        self.environment = environment
        self.history = history
        self.scheduled_minutes = scheduled_minutes
        self.activity_minutes = activity_minutes
        # Local naive deadline; falls back to the task's own value in the day's timezone
        if deadline is None and task.deadline is not None:
            deadline = to_local_naive(task.deadline, environment.timezone)
        self.deadline = deadline


def deadline_pressure(slot_start: datetime, deadline: Optional[datetime]) -> float:
    if deadline is None:
        return 0.0
    hours = max(0.0, (deadline - slot_start).total_seconds() / 3600)
    return 1 - math.exp(-hours / DEADLINE_TAU_HOURS)


def context_switch(arena: SlotArena, index: int, category: TaskCategory) -> float:
    neighbours = arena.neighbor_categories(index)
    if not neighbours:
        return 0.0
    if any(other != category for other in neighbours):
        return -1.0
    return 1.0


def daily_load(scheduled_minutes: int) -> float:
    if scheduled_minutes <= DAILY_LOAD_SOFT_LIMIT_MINUTES:
        return 0.0
    return -min(1.0, (scheduled_minutes - DAILY_LOAD_SOFT_LIMIT_MINUTES) / DAILY_LOAD_RAMP_MINUTES)


def habit_alignment(history: Optional[SchedulerHistory], category: TaskCategory,
                    start_minute: int, slot_minutes: int) -> float:
    if history is None:
        return 0.0
    average = history.average_start(category)
    if average is None:
        return 0.0
    deviation = abs(start_minute - average)
    if deviation <= slot_minutes:
        return 1.0
    if deviation >= HABIT_FALLOFF_MINUTES:
        return 0.0
    return 1 - deviation / HABIT_FALLOFF_MINUTES


def in_own_meal_window(metadata: TaskMetadata, environment: DayEnvironment, slot: Slot) -> bool:
    if not metadata.is_meal:
        return False
    return environment.meal_window(metadata.meal_type).contains(slot.start_minute, slot.end_minute)


def meal_conflict(metadata: TaskMetadata, environment: DayEnvironment, slot: Slot) -> float:
    if metadata.is_meal:
        return 1.0 if in_own_meal_window(metadata, environment, slot) else -1.0
    if environment.overlaps_any_meal(slot.start_minute, slot.end_minute):
        return -1.0
    return 0.0


def school_conflict(metadata: TaskMetadata, environment: DayEnvironment, slot: Slot) -> float:
    if metadata.is_school_activity:
        return 0.0
    return -1.0 if environment.overlaps_school(slot.start_minute, slot.end_minute) else 0.0


def sleep_conflict(environment: DayEnvironment, slot: Slot) -> float:
    return -1.0 if environment.overlaps_sleep(slot.start_minute, slot.end_minute) else 0.0


def activity_target_gap(metadata: TaskMetadata, environment: DayEnvironment, activity_minutes: int) -> float:
    if metadata.category not in ACTIVITY_CATEGORIES or not environment.is_child:
        return 0.0
    return 1.0 if environment.activity_target_minutes - activity_minutes > 0 else 0.0


def homework_evening_penalty(metadata: TaskMetadata, environment: DayEnvironment, hour: float) -> float:
    if not (environment.is_child and metadata.is_homework):
        return 0.0
    if hour >= 20:
        return -1.0
    if hour >= 19:
        return -0.5
    return 0.0


def games_morning_penalty(metadata: TaskMetadata, hour: float) -> float:
    if not (metadata.category == TaskCategory.GAMES or metadata.is_games):
        return 0.0
    if hour < 12:
        return -1.0
    if hour < 15:
        return -0.5
    if 17 <= hour <= 20:
        return 0.5
    return 0.0


def extract_feature_vector(context: FeatureContext) -> List[float]:
    """
    Compute the 12-component feature vector for placing ``context.task``
    into ``context.slot``. Pure with respect to its inputs.
    """
    metadata = context.metadata
    slot = context.slot
    environment = context.environment
    hour = slot.hour

    return [
        circadian_fit(metadata, hour, in_own_meal_window(metadata, environment, slot)),
        deadline_pressure(slot.start, context.deadline),
        min(1.0, max(0.0, float(context.task.priority))),
        context_switch(context.arena, slot.index, metadata.category),
        daily_load(context.scheduled_minutes),
        habit_alignment(context.history, metadata.category, slot.start_minute, context.arena.slot_minutes),
        meal_conflict(metadata, environment, slot),
        school_conflict(metadata, environment, slot),
        sleep_conflict(environment, slot),
        activity_target_gap(metadata, environment, context.activity_minutes),
        homework_evening_penalty(metadata, environment, hour),
        games_morning_penalty(metadata, hour),
    ]
