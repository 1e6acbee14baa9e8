"""
dayplan scheduling core

Places one day's tasks onto a 15-minute slot grid using a linear utility
model over per-slot features, and updates that model from user feedback.
Independent of the API and database layers.
"""

from .core.scheduler import TwoPhaseScheduler, generate_schedule
from .core.time_slot import Slot, SlotArena, build_time_grid
from .core.environment import DayEnvironment, normalize_environment
from .core.task import ScheduleTask, ScheduledSegment, ScheduleResult, SchedulerHistory, UserSettings
from .core.constants import FEATURE_NAMES, MODEL_VERSION, MealType, Profile, TaskCategory
from .features.extractor import FeatureContext, extract_feature_vector
from .learning.sgd import FeedbackExample, LearnerParams, apply_feedback, sgd_step
from .scoring.utility import utility_score

# Version for future API compatibility
__version__ = "1.0.0"
