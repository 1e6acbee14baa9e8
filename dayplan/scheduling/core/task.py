"""
Input and output records for one scheduling run.
"""

from datetime import datetime, time
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .constants import MealType, TaskCategory


class ScheduleTask(BaseModel):
    id: str
    title: str
    category: TaskCategory = TaskCategory.OTHER
    estimated_minutes: int = Field(30, ge=5, le=1440)
    priority: float = Field(0.5, ge=0.0, le=1.0)
    deadline: Optional[datetime] = None
    fixed_start: Optional[datetime] = None
    meal_type: Optional[MealType] = None
    description: Optional[str] = None
    min_chunk_minutes: Optional[int] = Field(None, ge=5)
    indivisible: Optional[bool] = None
    auto_generated: bool = False


class MealOffsets(BaseModel):
    breakfast: int = 0
    lunch: int = 0
    dinner: int = 0

    def for_meal(self, meal_type: MealType) -> int:
        return getattr(self, meal_type.value)


class UserSettings(BaseModel):
    sleep_start: time = time(23, 0)
    sleep_end: time = time(7, 0)
    work_start: time = time(9, 0)
    work_end: time = time(18, 0)
    locale: str = "en"
    meal_offsets: MealOffsets = Field(default_factory=MealOffsets)
    activity_target_minutes: Optional[int] = None
    school_start: Optional[time] = None
    school_end: Optional[time] = None
    timezone: str = "UTC"

    class Config:
        from_attributes = True


class SchedulerHistory(BaseModel):
    """Historical start minutes (from midnight) per category."""
    category_minutes: Dict[TaskCategory, List[int]] = Field(default_factory=dict)

    def average_start(self, category: TaskCategory) -> Optional[float]:
        minutes = self.category_minutes.get(category) or []
        if not minutes:
            return None
        return sum(minutes) / len(minutes)


class ScheduledSegment(BaseModel):
    task_id: str
    title: str
    category: TaskCategory
    start: datetime
    end: datetime
    utility_score: float
    features_snapshot: List[float]
    auto_generated: bool = False

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


class ScheduleResult(BaseModel):
    segments: List[ScheduledSegment] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    unplaced: List[str] = Field(default_factory=list)


class TaskMetadata:
    """
    Derived flags for a task, produced by a TaskClassifier.
    """
    def __init__(
        self,
        category: TaskCategory,
        meal_type: Optional[MealType] = None,
        is_homework: bool = False,
        is_games: bool = False,
        is_school_activity: bool = False,
        is_indivisible: bool = False,
    ):
        self.category = category
        self.meal_type = meal_type
        self.is_homework = is_homework
        self.is_games = is_games
        self.is_school_activity = is_school_activity
        self.is_indivisible = is_indivisible

    @property
    def is_meal(self) -> bool:
        return self.meal_type is not None

    def __repr__(self):
        flags = [name for name in ("is_meal", "is_homework", "is_games", "is_school_activity", "is_indivisible")
                 if getattr(self, name)]
        return f"TaskMetadata({self.category.value}, {', '.join(flags) or 'plain'})"
