"""
Time slot representation for the scheduling system.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from .constants import MINUTES_PER_DAY, SLOT_MINUTES, TaskCategory
from ..utils.time_utils import day_start, minute_of_day


class Slot:
    """
    One fixed-width cell of the day. A slot is either free or holds exactly
    one task id together with that task's category.
    """
    def __init__(self, index: int, start: datetime, end: datetime, start_minute: int):
        self.index = index
        self.start = start
        self.end = end
        self.start_minute = start_minute
        self.end_minute = start_minute + int((end - start).total_seconds() // 60)
        self.occupied_by: Optional[str] = None
        self.category: Optional[TaskCategory] = None

    @property
    def is_free(self) -> bool:
        return self.occupied_by is None

    @property
    def hour(self) -> float:
        return self.start_minute / 60

    def duration(self) -> timedelta:
        return self.end - self.start

    def __lt__(self, other):
        return self.start < other.start

    def __repr__(self):
        span = f"{self.start.strftime('%H:%M')} - {self.end.strftime('%H:%M')}"
        if self.occupied_by:
            return f"TaskSlot({self.index}, {span}, {self.occupied_by})"
        return f"AvailableSlot({self.index}, {span})"


class SlotArena:
    """
    Ordered slots for one day. Index arithmetic encodes adjacency; the arena
    is the only place occupancy changes.
    """
    def __init__(self, day: date, slot_minutes: int, slots: List[Slot]):
        self.day = day
        self.slot_minutes = slot_minutes
        self.slots = slots

    def __len__(self):
        return len(self.slots)

    def __iter__(self):
        return iter(self.slots)

    def __getitem__(self, index: int) -> Slot:
        return self.slots[index]

    def is_free(self, index: int) -> bool:
        return 0 <= index < len(self.slots) and self.slots[index].is_free

    def free_indexes(self) -> List[int]:
        return [slot.index for slot in self.slots if slot.is_free]

    def occupy(self, indexes: Iterable[int], task_id: str, category: TaskCategory):
        indexes = list(indexes)
        for index in indexes:
            if not self.is_free(index):
                raise ValueError(f"Slot {index} is not free")
        for index in indexes:
            self.slots[index].occupied_by = task_id
            self.slots[index].category = category

    def occupied_minutes(self) -> int:
        return sum(self.slot_minutes for slot in self.slots if not slot.is_free)

    def neighbor_categories(self, index: int) -> List[TaskCategory]:
        """Categories held by the occupied immediate neighbours of ``index``."""
        categories = []
        for neighbor in (index - 1, index + 1):
            if 0 <= neighbor < len(self.slots) and not self.slots[neighbor].is_free:
                categories.append(self.slots[neighbor].category)
        return categories

    def index_containing(self, moment: datetime) -> Optional[int]:
        minute = minute_of_day(moment, self.day)
        if minute < 0 or minute >= MINUTES_PER_DAY:
            return None
        return minute // self.slot_minutes

    def nearest_index(self, moment: datetime) -> Optional[int]:
        """Index whose start is closest to ``moment``, ties to the earlier slot."""
        if not self.slots:
            return None
        minute = minute_of_day(moment, self.day)
        return min(range(len(self.slots)), key=lambda i: (abs(self.slots[i].start_minute - minute), i))


def build_time_grid(day: date, slot_minutes: int = SLOT_MINUTES) -> SlotArena:
    """
    Build the contiguous slot grid covering ``day`` from 00:00 to 24:00.
    """
    if slot_minutes <= 0 or MINUTES_PER_DAY % slot_minutes != 0:
        raise ValueError(f"Slot width must divide {MINUTES_PER_DAY} minutes, got {slot_minutes}")

    midnight = day_start(day)
    slots = []
    for index in range(MINUTES_PER_DAY // slot_minutes):
        start_minute = index * slot_minutes
        start = midnight + timedelta(minutes=start_minute)
        slots.append(Slot(index, start, start + timedelta(minutes=slot_minutes), start_minute))
    return SlotArena(day, slot_minutes, slots)
