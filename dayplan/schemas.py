from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date, time
from typing import Optional, List, Literal
import pytz
from .scheduling.core.constants import TaskCategory, MealType, Profile, FeedbackSource, MEAL_OFFSET_LIMIT_MINUTES
from .scheduling.core.task import ScheduleTask

Locale = Literal["en", "ru"]

# ----------------- User Schemas ---------------------

class MealOffsetsSchema(BaseModel):
    breakfast: int = Field(0, ge=-MEAL_OFFSET_LIMIT_MINUTES, le=MEAL_OFFSET_LIMIT_MINUTES)
    lunch: int = Field(0, ge=-MEAL_OFFSET_LIMIT_MINUTES, le=MEAL_OFFSET_LIMIT_MINUTES)
    dinner: int = Field(0, ge=-MEAL_OFFSET_LIMIT_MINUTES, le=MEAL_OFFSET_LIMIT_MINUTES)


def _check_timezone(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in pytz.all_timezones_set:
        raise ValueError(f"Unknown timezone: {value}")
    return value


class UserCreate(BaseModel):
    email: str
    name: Optional[str] = None
    profile: Profile = Profile.ADULT
    locale: Locale = "en"
    timezone: str = "UTC"

    validate_timezone = field_validator("timezone")(_check_timezone)

class UserOut(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    profile: Profile
    locale: str
    timezone: str

    class Config:
        from_attributes = True

class SettingsOut(BaseModel):
    sleep_start: time
    sleep_end: time
    work_start: time
    work_end: time
    locale: str
    profile: Profile
    timezone: str
    preferred_daily_minutes: int
    meal_offsets: MealOffsetsSchema
    activity_target_minutes: Optional[int] = None
    school_start: Optional[time] = None
    school_end: Optional[time] = None

class SettingsUpdate(BaseModel):
    sleep_start: Optional[time] = None
    sleep_end: Optional[time] = None
    work_start: Optional[time] = None
    work_end: Optional[time] = None
    locale: Optional[Locale] = None
    profile: Optional[Profile] = None
    timezone: Optional[str] = None
    preferred_daily_minutes: Optional[int] = Field(None, ge=0, le=1440)
    meal_offsets: Optional[MealOffsetsSchema] = None
    activity_target_minutes: Optional[int] = Field(None, ge=0, le=360)
    school_start: Optional[time] = None
    school_end: Optional[time] = None

    validate_timezone = field_validator("timezone")(_check_timezone)

# ----------------- Task Schemas ---------------------

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[TaskCategory] = None
    estimated_minutes: int = Field(30, ge=5, le=1440)
    priority: float = Field(0.5, ge=0.0, le=1.0)
    deadline: Optional[datetime] = None
    fixed_start: Optional[datetime] = None
    scheduled_date: Optional[date] = None
    meal_type: Optional[MealType] = None
    min_chunk_minutes: Optional[int] = Field(None, ge=5, le=1440)
    indivisible: Optional[bool] = None

class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[TaskCategory] = None
    estimated_minutes: Optional[int] = Field(None, ge=5, le=1440)
    priority: Optional[float] = Field(None, ge=0.0, le=1.0)
    deadline: Optional[datetime] = None
    fixed_start: Optional[datetime] = None
    scheduled_date: Optional[date] = None
    meal_type: Optional[MealType] = None
    min_chunk_minutes: Optional[int] = Field(None, ge=5, le=1440)
    indivisible: Optional[bool] = None
    archived: Optional[bool] = None

class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    category: TaskCategory
    estimated_minutes: int
    priority: float
    deadline: Optional[datetime] = None
    fixed_start: Optional[datetime] = None
    scheduled_date: Optional[date] = None
    meal_type: Optional[MealType] = None
    min_chunk_minutes: Optional[int] = None
    indivisible: Optional[bool] = None
    archived: bool
    ai_label: Optional[str] = None
    ai_confidence: Optional[float] = None
    ai_provider: Optional[str] = None

    class Config:
        from_attributes = True

# ----------------- Schedule Schemas ---------------------

class ScheduleRequest(BaseModel):
    date: date
    task_ids: Optional[List[int]] = None

class SlotOut(BaseModel):
    task_id: str
    title: str
    category: TaskCategory
    start: datetime
    end: datetime
    score: float
    features_snapshot: List[float]
    reasoning: Optional[str] = None
    auto_generated: bool = False

class PlanOut(BaseModel):
    id: Optional[int] = None
    date: date
    slots: List[SlotOut]
    warnings: List[str] = Field(default_factory=list)
    model_version: int

class PreviewSettings(BaseModel):
    sleep_start: time = time(23, 0)
    sleep_end: time = time(7, 0)
    locale: Locale = "en"
    meal_offsets: MealOffsetsSchema = Field(default_factory=MealOffsetsSchema)
    activity_target_minutes: Optional[int] = Field(None, ge=0, le=360)
    timezone: str = "UTC"

    validate_timezone = field_validator("timezone")(_check_timezone)

class PreviewRequest(BaseModel):
    date: date
    tasks: List[ScheduleTask]
    weights: Optional[List[float]] = None
    profile: Profile = Profile.ADULT
    settings: PreviewSettings = Field(default_factory=PreviewSettings)

class PreviewResponse(BaseModel):
    slots: List[SlotOut]
    warnings: List[str]

# ----------------- Feedback Schemas ---------------------

class FeedbackSlot(BaseModel):
    start: datetime
    end: datetime

class FeedbackEntry(BaseModel):
    task_id: str
    slot: FeedbackSlot
    label: int = Field(..., ge=0, le=1)
    source: FeedbackSource = FeedbackSource.THUMBS
    note: Optional[str] = None

class FeedbackRequest(BaseModel):
    plan_id: int
    entries: List[FeedbackEntry] = Field(..., min_length=1)

class EditPatch(BaseModel):
    task_id: str
    start: datetime
    end: datetime

class EditsRequest(BaseModel):
    plan_id: int
    patches: List[EditPatch] = Field(..., min_length=1)

class FeedbackResult(BaseModel):
    stored: int
    feedback_count: int
    updated: bool
    queued: bool = False

# ----------------- Model Schemas ---------------------

class WeightsOut(BaseModel):
    weights: List[float]
    feature_names: List[str]
    model_version: int
    updated_at: Optional[datetime] = None
