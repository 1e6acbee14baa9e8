"""
Shared enums and tuning constants for the day planner.
"""

import enum


class TaskCategory(str, enum.Enum):
    HEALTHCARE = "Healthcare"
    SPORT_ACTIVITY = "Sport activity"
    DEEP_WORK = "Deep work"
    ADMIN_ERRANDS = "Admin/Errands"
    LEARNING = "Learning"
    SOCIAL = "Social"
    HOUSEHOLD = "Household"
    CREATIVE = "Creative"
    RELAXING = "Relaxing"
    GAMES = "Games"
    OUTDOOR_PLAY = "Outdoor Play"
    COMMUTE = "Commute"
    OTHER = "Other"


class MealType(str, enum.Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


class Profile(str, enum.Enum):
    ADULT = "adult"
    CHILD = "child_school_age"


class FeedbackSource(str, enum.Enum):
    KEPT = "kept"
    MOVED = "moved"
    THUMBS = "thumbs"


MODEL_VERSION = 3
SLOT_MINUTES = 15
MINUTES_PER_DAY = 1440
MIN_SEGMENT_MINUTES = 30
MAX_TASKS_PER_DAY = 50
AUTO_MEAL_MINUTES = 30
MEAL_OFFSET_LIMIT_MINUTES = 30
SECOND_SEGMENT_PENALTY = 0.2

INITIAL_LEARNING_RATE = 0.05
INITIAL_REGULARIZATION = 0.001
MIN_FEEDBACK_FOR_UPDATE = 20

DEADLINE_TAU_HOURS = 6.0
DAILY_LOAD_SOFT_LIMIT_MINUTES = 360
DAILY_LOAD_RAMP_MINUTES = 120
HABIT_FALLOFF_MINUTES = 240

# Minutes from midnight, end exclusive
DEFAULT_MEAL_WINDOWS = {
    MealType.BREAKFAST: (420, 510),
    MealType.LUNCH: (720, 840),
    MealType.DINNER: (1080, 1230),
}

CHILD_SCHOOL_WINDOW = (510, 795)

ACTIVITY_TARGET_MINUTES = {
    Profile.ADULT: 0,
    Profile.CHILD: 60,
}

FEATURE_NAMES = [
    "circadian_fit",
    "deadline_pressure",
    "priority",
    "context_switch",
    "daily_load",
    "habit_alignment",
    "meal_conflict",
    "school_conflict",
    "sleep_conflict",
    "activity_target_gap",
    "homework_evening_penalty",
    "games_morning_penalty",
]
FEATURE_COUNT = len(FEATURE_NAMES)

# Indexes of meal/school/sleep conflict, excluded from learning on masked updates
HARD_CONSTRAINT_FEATURES = (6, 7, 8)

DEFAULT_WEIGHTS = {
    Profile.ADULT: [0.55, 0.50, 0.55, -0.25, -0.20, 0.35, -0.90, 0.00, -1.20, 0.15, 0.00, 0.00],
    Profile.CHILD: [0.55, 0.45, 0.50, -0.25, -0.15, 0.30, -0.95, -1.10, -1.30, 0.40, -0.70, -0.80],
}

AUTO_MEAL_TITLES = {
    "en": {
        MealType.BREAKFAST: "Breakfast",
        MealType.LUNCH: "Lunch",
        MealType.DINNER: "Dinner",
    },
    "ru": {
        MealType.BREAKFAST: "Завтрак",
        MealType.LUNCH: "Обед",
        MealType.DINNER: "Ужин",
    },
}

NO_TASKS_WARNING = "No tasks available for scheduling"
