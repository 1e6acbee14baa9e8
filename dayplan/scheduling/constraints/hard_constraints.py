"""
Hard constraint checks deciding whether a task may use a slot at all.
"""

from datetime import datetime
from typing import List, Optional

from ..core.environment import DayEnvironment
from ..core.task import TaskMetadata
from ..core.time_slot import Slot, SlotArena


def is_before_deadline(slot: Slot, deadline: Optional[datetime]) -> bool:
    return deadline is None or slot.start < deadline


def is_slot_admissible(metadata: TaskMetadata, slot: Slot, environment: DayEnvironment,
                       deadline: Optional[datetime] = None) -> bool:
    """
    Check if a free slot is allowed for a task under the strict rules:
    deadline, sleep, meal windows and (child weekdays) the school window.
    """
    if not slot.is_free:
        return False
    if not is_before_deadline(slot, deadline):
        return False

    start, end = slot.start_minute, slot.end_minute
    if environment.overlaps_sleep(start, end):
        return False

    # School activity lives inside the school window and may cross lunch
    if metadata.is_school_activity and environment.school_applies:
        return environment.inside_school(start, end)

    if metadata.is_meal:
        if not environment.meal_window(metadata.meal_type).contains(start, end):
            return False
    elif environment.overlaps_any_meal(start, end):
        return False

    if not metadata.is_school_activity and environment.overlaps_school(start, end):
        return False
    return True


def is_fixed_slot_admissible(metadata: TaskMetadata, slot: Slot, environment: DayEnvironment,
                             deadline: Optional[datetime] = None) -> bool:
    """
    Rules for a user-fixed start time. The fixed time overrides meal windows
    but never sleep, school or an occupied slot.
    """
    if not slot.is_free:
        return False
    if not is_before_deadline(slot, deadline):
        return False
    if environment.overlaps_sleep(slot.start_minute, slot.end_minute):
        return False
    if not metadata.is_school_activity and environment.overlaps_school(slot.start_minute, slot.end_minute):
        return False
    return True


def collect_admissible_indexes(metadata: TaskMetadata, arena: SlotArena, environment: DayEnvironment,
                               deadline: Optional[datetime] = None) -> List[int]:
    return [slot.index for slot in arena if is_slot_admissible(metadata, slot, environment, deadline)]
