"""
Two-phase day scheduler.

Phase zero pins the mandatory blocks (fixed-time tasks, the school activity,
meals); phase one places everything else by urgency.
"""

import enum
import logging
import math
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from .constants import (
    AUTO_MEAL_MINUTES, AUTO_MEAL_TITLES, DEFAULT_WEIGHTS, FEATURE_COUNT, MAX_TASKS_PER_DAY,
    MIN_SEGMENT_MINUTES, NO_TASKS_WARNING, MealType, Profile, TaskCategory
)
from .environment import DayEnvironment, normalize_environment
from .task import (
    ScheduledSegment, ScheduleResult, ScheduleTask, SchedulerHistory, TaskMetadata, UserSettings
)
from .time_slot import SlotArena, build_time_grid
from ..algorithms.placement import (
    SlotEvaluation, WindowPlan, place_divisible, place_fixed, place_indivisible
)
from ..classification import RuleBasedClassifier, TaskClassifier
from ..constraints.hard_constraints import collect_admissible_indexes, is_fixed_slot_admissible
from ..features.extractor import ACTIVITY_CATEGORIES, FeatureContext, deadline_pressure, extract_feature_vector
from ..scoring.utility import ensure_weights_length, utility_score
from ..utils.time_utils import to_local_naive

logger = logging.getLogger(__name__)


class SchedulerState(str, enum.Enum):
    NORMALIZING = "normalizing"
    PHASE_ZERO = "phase_zero"
    PHASE_ONE = "phase_one"
    DONE = "done"


def build_auto_meal_tasks(tasks: Sequence[ScheduleTask], classifier: TaskClassifier,
                          locale: str = "en") -> List[ScheduleTask]:
    """Meal tasks for every meal type the user did not add themselves."""
    present = set()
    for task in tasks:
        metadata = classifier.classify(task)
        if metadata.meal_type is not None:
            present.add(metadata.meal_type)

    titles = AUTO_MEAL_TITLES.get(locale, AUTO_MEAL_TITLES["en"])
    meals = []
    for meal_type in MealType:
        if meal_type in present:
            continue
        meals.append(ScheduleTask(
            id=f"auto-meal-{meal_type.value}",
            title=titles[meal_type],
            category=TaskCategory.OTHER,
            estimated_minutes=AUTO_MEAL_MINUTES,
            priority=1.0,
            meal_type=meal_type,
            auto_generated=True,
        ))
    return meals


class TwoPhaseScheduler:
    """
    Schedules one user's day from an immutable snapshot of inputs.

    The scheduler owns its slot arena for the duration of ``run()``; nothing
    else writes to it.
    """
    def __init__(
        self,
        day: date,
        tasks: Sequence[ScheduleTask],
        weights: Sequence[float],
        settings: UserSettings,
        history: Optional[SchedulerHistory] = None,
        profile: Profile = Profile.ADULT,
        classifier: Optional[TaskClassifier] = None,
        auto_meals: bool = True,
    ):
        self.day = day
        self.tasks = list(tasks)
        self.settings = settings
        self.history = history
        self.profile = profile
        self.classifier = classifier or RuleBasedClassifier()
        self.auto_meals = auto_meals
        self.weights = ensure_weights_length(weights or DEFAULT_WEIGHTS[profile], FEATURE_COUNT)

        self.state = SchedulerState.NORMALIZING
        self.environment: Optional[DayEnvironment] = None
        self.arena: Optional[SlotArena] = None
        self.metadata: Dict[str, TaskMetadata] = {}
        self.segments: List[ScheduledSegment] = []
        self.unplaced: List[ScheduleTask] = []
        self.warnings: List[str] = []

    # ================================
    # INITIALIZATION & SETUP
    # ================================

    def _normalize(self):
        self.environment = normalize_environment(self.day, self.settings, self.profile)
        self.arena = build_time_grid(self.day)

        if len(self.tasks) > MAX_TASKS_PER_DAY:
            dropped = self.tasks[MAX_TASKS_PER_DAY:]
            self.tasks = self.tasks[:MAX_TASKS_PER_DAY]
            self.warnings.append(
                f"Only {MAX_TASKS_PER_DAY} tasks are scheduled per day; skipped: "
                + ", ".join(task.title for task in dropped)
            )

        if self.auto_meals:
            self.tasks.extend(build_auto_meal_tasks(self.tasks, self.classifier, self.environment.locale))

        for task in self.tasks:
            self.metadata[task.id] = self.classifier.classify(task)

    def _local(self, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return to_local_naive(value, self.environment.timezone)

    # ================================
    # MAIN ENTRY POINT
    # ================================

    def run(self) -> ScheduleResult:
        self._normalize()

        self.state = SchedulerState.PHASE_ZERO
        fixed, school, meals, regular = self._partition()
        for task in fixed:
            self._place_fixed(task)
        for task in school + meals:
            self._place(task)

        self.state = SchedulerState.PHASE_ONE
        for task in self._order_by_urgency(regular):
            self._place(task)

        self.state = SchedulerState.DONE
        self.segments.sort(key=lambda segment: (segment.start, segment.task_id))
        if self.unplaced:
            self.warnings.append("Couldn't schedule: " + ", ".join(task.title for task in self.unplaced))
        logger.info(
            f"Scheduled {len(self.segments)} segments for {self.day}, {len(self.unplaced)} tasks unplaced"
        )
        return ScheduleResult(
            segments=self.segments,
            warnings=self.warnings,
            unplaced=[task.id for task in self.unplaced],
        )

    # ================================
    # PHASES
    # ================================

    def _partition(self):
        fixed, school, meals, regular = [], [], [], []
        for task in self.tasks:
            metadata = self.metadata[task.id]
            if task.fixed_start is not None:
                fixed.append(task)
            elif metadata.is_school_activity:
                school.append(task)
            elif metadata.is_meal:
                meals.append(task)
            else:
                regular.append(task)

        fixed.sort(key=lambda task: (self._local(task.fixed_start), task.title, task.id))
        school.sort(key=lambda task: (-task.priority, task.title, task.id))
        meals.sort(key=lambda task: (
            self.environment.meal_window(self.metadata[task.id].meal_type).start_minute, task.id
        ))
        return fixed, school, meals, regular

    def _max_deadline_pressure(self, task: ScheduleTask) -> float:
        deadline = self._local(task.deadline)
        if deadline is None:
            return 0.0
        admissible = collect_admissible_indexes(self.metadata[task.id], self.arena, self.environment, deadline)
        if not admissible:
            return 0.0
        return deadline_pressure(self.arena[min(admissible)].start, deadline)

    def _order_by_urgency(self, tasks: List[ScheduleTask]) -> List[ScheduleTask]:
        keyed = []
        for task in tasks:
            urgency = task.priority * self._max_deadline_pressure(task)
            deadline = self._local(task.deadline)
            keyed.append((
                -urgency,
                -task.priority,
                deadline is None,
                deadline or datetime.max,
                task.title,
                task.id,
                task,
            ))
        keyed.sort(key=lambda entry: entry[:-1])
        return [entry[-1] for entry in keyed]

    # ================================
    # PLACEMENT
    # ================================

    def _scheduled_minutes(self) -> int:
        return sum(segment.duration_minutes() for segment in self.segments)

    def _activity_minutes(self) -> int:
        return sum(segment.duration_minutes() for segment in self.segments
                   if segment.category in ACTIVITY_CATEGORIES)

    def _required_slots(self, task: ScheduleTask) -> int:
        return max(1, math.ceil(task.estimated_minutes / self.arena.slot_minutes))

    def _evaluate(self, task: ScheduleTask, indexes: List[int]) -> Dict[int, SlotEvaluation]:
        metadata = self.metadata[task.id]
        deadline = self._local(task.deadline)
        scheduled_minutes = self._scheduled_minutes()
        activity_minutes = self._activity_minutes()
        evaluations = {}
        for index in indexes:
            context = FeatureContext(
                task=task,
                metadata=metadata,
                slot=self.arena[index],
                arena=self.arena,
                environment=self.environment,
                history=self.history,
                scheduled_minutes=scheduled_minutes,
                activity_minutes=activity_minutes,
                deadline=deadline,
            )
            features = extract_feature_vector(context)
            evaluations[index] = SlotEvaluation(index, features, utility_score(self.weights, features))
        return evaluations

    def _place(self, task: ScheduleTask):
        metadata = self.metadata[task.id]
        deadline = self._local(task.deadline)
        indexes = collect_admissible_indexes(metadata, self.arena, self.environment, deadline)
        if not indexes:
            logger.info(f"No admissible slots for '{task.title}'")
            self.unplaced.append(task)
            return

        evaluations = self._evaluate(task, indexes)
        required = self._required_slots(task)
        if metadata.is_indivisible:
            plans = place_indivisible(self.arena, task.id, metadata.category, required, evaluations)
        else:
            min_chunk = task.min_chunk_minutes or MIN_SEGMENT_MINUTES
            min_chunk_slots = max(1, math.ceil(min_chunk / self.arena.slot_minutes))
            plans = place_divisible(self.arena, task.id, metadata.category, required, min_chunk_slots, evaluations)
        self._record(task, plans)

    def _place_fixed(self, task: ScheduleTask):
        metadata = self.metadata[task.id]
        fixed_start = self._local(task.fixed_start)
        deadline = self._local(task.deadline)

        anchor = self.arena.index_containing(fixed_start)
        if anchor is None:
            anchor = self.arena.nearest_index(fixed_start)
            if anchor is None or abs((self.arena[anchor].start - fixed_start).total_seconds()) > \
                    self.arena.slot_minutes * 60:
                logger.info(f"Fixed start of '{task.title}' is outside {self.day}")
                self.unplaced.append(task)
                return

        required = self._required_slots(task)
        window = [index for index in range(anchor, anchor + required) if index < len(self.arena)]
        evaluations = self._evaluate(task, window)

        def admissible(slot):
            return is_fixed_slot_admissible(metadata, slot, self.environment, deadline)

        plans = place_fixed(self.arena, task.id, metadata.category, anchor, required, admissible, evaluations)
        self._record(task, plans)

    def _record(self, task: ScheduleTask, plans: List[WindowPlan]):
        if not plans:
            logger.info(f"Could not place '{task.title}' ({task.estimated_minutes} min)")
            self.unplaced.append(task)
            return
        category = self.metadata[task.id].category
        for plan in plans:
            first, last = self.arena[plan.indexes[0]], self.arena[plan.indexes[-1]]
            self.segments.append(ScheduledSegment(
                task_id=task.id,
                title=task.title,
                category=category,
                start=first.start,
                end=last.end,
                utility_score=plan.score,
                features_snapshot=plan.features_snapshot,
                auto_generated=task.auto_generated,
            ))


def generate_schedule(
    day: date,
    tasks: Sequence[ScheduleTask],
    weights: Sequence[float],
    settings: UserSettings,
    history: Optional[SchedulerHistory] = None,
    profile: Profile = Profile.ADULT,
    classifier: Optional[TaskClassifier] = None,
    auto_meals: bool = True,
) -> ScheduleResult:
    """
    Schedule ``tasks`` onto ``day``. Unplaceable tasks are reported in the
    result's warnings; expected conditions never raise.
    """
    if not tasks:
        return ScheduleResult(warnings=[NO_TASKS_WARNING])
    scheduler = TwoPhaseScheduler(
        day=day,
        tasks=tasks,
        weights=weights,
        settings=settings,
        history=history,
        profile=profile,
        classifier=classifier,
        auto_meals=auto_meals,
    )
    return scheduler.run()
