"""
Scheduler service: loads a user's day from the database, runs the
scheduling core, explains and stores the resulting plan, and turns plan
feedback into learner updates.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence

import pytz
from sqlalchemy import or_, and_
from sqlalchemy.orm import Session

from .. import config
from ..models import Feedback, Plan, PlanSlot, Task, User
from ..schemas import EditPatch, FeedbackEntry, FeedbackResult, PlanOut, PreviewRequest, PreviewResponse, SlotOut
from ..scheduling.core.constants import MODEL_VERSION, TaskCategory
from ..scheduling.core.scheduler import generate_schedule
from ..scheduling.core.task import (
    MealOffsets, ScheduledSegment, ScheduleTask, SchedulerHistory, UserSettings
)
from ..scheduling.utils.time_utils import (
    format_hhmm, get_timezone, local_naive_to_utc, local_today, localize, to_utc_naive, utc_naive_to_local
)
from ..celery_tasks.learning import apply_feedback_task
from .ai_provider import AIProvider
from .explanations import auto_meal_explanation, top_feature_summaries, fallback_explanation
from .model_service import apply_feedback_updates, build_feedback_examples, count_feedback, ensure_user_weights

logger = logging.getLogger(__name__)

HISTORY_PLAN_LIMIT = 5


class SchedulerService:
    """
    Bridges stored users, tasks and plans with the scheduling core.
    """
    def __init__(self, db: Session, provider: AIProvider):
        self.db = db
        self.provider = provider

    # ================================
    # INPUTS
    # ================================

    @staticmethod
    def user_settings(user: User) -> UserSettings:
        return UserSettings(
            sleep_start=user.sleep_start,
            sleep_end=user.sleep_end,
            work_start=user.work_start,
            work_end=user.work_end,
            locale=user.locale or "en",
            meal_offsets=MealOffsets(
                breakfast=user.breakfast_offset or 0,
                lunch=user.lunch_offset or 0,
                dinner=user.dinner_offset or 0,
            ),
            activity_target_minutes=user.activity_target_minutes,
            school_start=user.school_start,
            school_end=user.school_end,
            timezone=user.timezone or config.DEFAULT_TIMEZONE,
        )

    @staticmethod
    def to_schedule_task(task: Task) -> ScheduleTask:
        """Stored naive-UTC datetimes go to the core as aware UTC values."""
        return ScheduleTask(
            id=str(task.id),
            title=task.title,
            category=task.category or TaskCategory.OTHER,
            estimated_minutes=task.estimated_minutes,
            priority=task.priority,
            deadline=pytz.utc.localize(task.deadline) if task.deadline else None,
            fixed_start=pytz.utc.localize(task.fixed_start) if task.fixed_start else None,
            meal_type=task.meal_type,
            description=task.description,
            min_chunk_minutes=task.min_chunk_minutes,
            indivisible=task.indivisible,
        )

    def list_tasks_for_day(self, user: User, day: date, task_ids: Optional[Sequence[int]] = None) -> List[Task]:
        """
        Unarchived tasks planned for ``day``; undated tasks only count for
        today. Archived tasks stay in when their fixed start is on ``day``.
        """
        tz = get_timezone(user.timezone)
        day_start = local_naive_to_utc(datetime.combine(day, datetime.min.time()), tz)
        day_end = local_naive_to_utc(datetime.combine(day + timedelta(days=1), datetime.min.time()), tz)

        date_filter = [Task.scheduled_date == day]
        if day == local_today(tz):
            date_filter.append(Task.scheduled_date.is_(None))

        query = self.db.query(Task).filter(
            Task.user_id == user.id,
            or_(
                and_(Task.archived.is_(False), or_(*date_filter)),
                and_(Task.archived.is_(True), Task.fixed_start >= day_start, Task.fixed_start < day_end),
            ),
        )
        if task_ids:
            query = query.filter(Task.id.in_(list(task_ids)))
        return query.order_by(Task.id).all()

    def load_recent_history(self, user: User, limit: int = HISTORY_PLAN_LIMIT) -> SchedulerHistory:
        tz = get_timezone(user.timezone)
        plans = (
            self.db.query(Plan)
            .filter(Plan.user_id == user.id)
            .order_by(Plan.plan_date.desc())
            .limit(limit)
            .all()
        )
        minutes: Dict[TaskCategory, List[int]] = defaultdict(list)
        for plan in plans:
            for slot in plan.slots:
                local_start = utc_naive_to_local(slot.start, tz)
                minutes[slot.category].append(local_start.hour * 60 + local_start.minute)
        return SchedulerHistory(category_minutes=dict(minutes))

    def ensure_task_categories(self, tasks: Sequence[Task]):
        """Stamp provider categories onto tasks that were never categorized."""
        changed = False
        for task in tasks:
            if task.category not in (None, TaskCategory.OTHER) or task.ai_provider:
                continue
            try:
                result = self.provider.categorize(task.title, task.description)
            except Exception as exc:
                logger.warning(f"Categorization failed for task {task.id}: {exc}")
                continue
            task.category = result.label
            task.ai_label = result.label.value
            task.ai_confidence = result.confidence
            task.ai_provider = result.provider
            changed = True
        if changed:
            self.db.commit()

    # ================================
    # EXPLANATIONS
    # ================================

    def explain_segment(self, segment: ScheduledSegment, locale: str) -> str:
        if segment.auto_generated:
            return auto_meal_explanation(segment.title, locale)
        start = format_hhmm(segment.start)
        end = format_hhmm(segment.end)
        summaries = top_feature_summaries(segment.features_snapshot)
        try:
            return self.provider.explain(segment.title, start, end, summaries, locale)
        except Exception as exc:
            logger.warning(f"Explanation failed for '{segment.title}': {exc}")
            return fallback_explanation(segment.title, start, end, summaries, locale)

    # ================================
    # PLANS
    # ================================

    def get_plan(self, user: User, day: date) -> Optional[Plan]:
        return self.db.query(Plan).filter(Plan.user_id == user.id, Plan.plan_date == day).first()

    def calculate_schedule(self, user: User, day: date, task_ids: Optional[Sequence[int]] = None) -> Plan:
        settings = self.user_settings(user)
        tz = get_timezone(settings.timezone)

        tasks = self.list_tasks_for_day(user, day, task_ids)
        self.ensure_task_categories(tasks)
        weights, migrated = ensure_user_weights(user)
        if migrated:
            self.db.commit()

        result = generate_schedule(
            day=day,
            tasks=[self.to_schedule_task(task) for task in tasks],
            weights=weights,
            settings=settings,
            history=self.load_recent_history(user),
            profile=user.profile,
        )

        plan = self.get_plan(user, day)
        if plan is None:
            plan = Plan(user_id=user.id, plan_date=day)
            self.db.add(plan)
        plan.slots = [
            PlanSlot(
                task_id=segment.task_id,
                title=segment.title,
                category=segment.category,
                start=local_naive_to_utc(segment.start, tz),
                end=local_naive_to_utc(segment.end, tz),
                score=segment.utility_score,
                features_snapshot=list(segment.features_snapshot),
                reasoning=self.explain_segment(segment, settings.locale),
                auto_generated=segment.auto_generated,
            )
            for segment in result.segments
        ]
        plan.warnings = list(result.warnings)
        plan.model_version = MODEL_VERSION
        plan.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(plan)
        logger.info(f"Stored plan {plan.id} for user {user.id} on {day} with {len(plan.slots)} slots")
        return plan

    def get_or_calculate(self, user: User, day: date) -> Plan:
        return self.get_plan(user, day) or self.calculate_schedule(user, day)

    @staticmethod
    def plan_to_schema(plan: Plan, user: User) -> PlanOut:
        tz = get_timezone(user.timezone)
        return PlanOut(
            id=plan.id,
            date=plan.plan_date,
            slots=[
                SlotOut(
                    task_id=slot.task_id,
                    title=slot.title,
                    category=slot.category,
                    start=pytz.utc.localize(slot.start).astimezone(tz),
                    end=pytz.utc.localize(slot.end).astimezone(tz),
                    score=slot.score,
                    features_snapshot=list(slot.features_snapshot or []),
                    reasoning=slot.reasoning,
                    auto_generated=slot.auto_generated,
                )
                for slot in plan.slots
            ],
            warnings=list(plan.warnings or []),
            model_version=plan.model_version,
        )

    # ================================
    # FEEDBACK
    # ================================

    @staticmethod
    def _storage_time(value: datetime, tz) -> datetime:
        return to_utc_naive(value, tz)

    def _user_plan(self, user: User, plan_id: int) -> Optional[Plan]:
        return self.db.query(Plan).filter(Plan.id == plan_id, Plan.user_id == user.id).first()

    def record_feedback(self, user: User, plan_id: int, entries: Sequence[FeedbackEntry]) -> Optional[FeedbackResult]:
        """
        Store feedback for matching plan slots and update the model.
        Returns None when the plan does not exist; raises ValueError when no
        entry matches a slot of the plan.
        """
        plan = self._user_plan(user, plan_id)
        if plan is None:
            return None
        tz = get_timezone(user.timezone)
        slots = {(slot.task_id, slot.start, slot.end): slot for slot in plan.slots}

        stored = []
        for entry in entries:
            key = (entry.task_id, self._storage_time(entry.slot.start, tz), self._storage_time(entry.slot.end, tz))
            slot = slots.get(key)
            if slot is None:
                logger.info(f"Feedback for task {entry.task_id} does not match plan {plan.id}")
                continue
            feedback = Feedback(
                user_id=user.id,
                plan_id=plan.id,
                task_id=entry.task_id,
                slot_start=slot.start,
                slot_end=slot.end,
                label=entry.label,
                source=entry.source,
                note=entry.note,
                features_snapshot=list(slot.features_snapshot or []),
            )
            self.db.add(feedback)
            stored.append(feedback)

        if not stored:
            raise ValueError("No matching slots found for feedback")
        self.db.commit()

        feedback_count = count_feedback(self.db, user.id)
        if config.LEARNING_ASYNC:
            apply_feedback_task.apply_async(
                args=[user.id, [feedback.id for feedback in stored]], queue="learning"
            )
            return FeedbackResult(stored=len(stored), feedback_count=feedback_count, updated=False, queued=True)

        examples = build_feedback_examples([(feedback.features_snapshot, feedback.label) for feedback in stored])
        updated = apply_feedback_updates(self.db, user, examples)
        return FeedbackResult(stored=len(stored), feedback_count=feedback_count, updated=updated)

    def apply_edits(self, user: User, plan_id: int, patches: Sequence[EditPatch]) -> Optional[FeedbackResult]:
        """
        Move edited plan slots and learn from each edited task as a positive
        example. Returns None when the plan does not exist.
        """
        plan = self._user_plan(user, plan_id)
        if plan is None:
            return None
        tz = get_timezone(user.timezone)

        rows = []
        for patch in patches:
            slot = next((slot for slot in plan.slots if slot.task_id == patch.task_id), None)
            if slot is None:
                continue
            rows.append((list(slot.features_snapshot or []), 1))
            slot.start = self._storage_time(patch.start, tz)
            slot.end = self._storage_time(patch.end, tz)
        self.db.commit()

        feedback_count = count_feedback(self.db, user.id)
        updated = False
        if rows:
            updated = apply_feedback_updates(self.db, user, build_feedback_examples(rows))
        return FeedbackResult(stored=0, feedback_count=feedback_count, updated=updated)


def preview_schedule(request: PreviewRequest) -> PreviewResponse:
    """Stateless scheduling of caller-supplied tasks; nothing is stored."""
    settings = UserSettings(
        sleep_start=request.settings.sleep_start,
        sleep_end=request.settings.sleep_end,
        locale=request.settings.locale,
        meal_offsets=MealOffsets(**request.settings.meal_offsets.model_dump()),
        activity_target_minutes=request.settings.activity_target_minutes,
        timezone=request.settings.timezone,
    )
    tz = get_timezone(settings.timezone)
    result = generate_schedule(
        day=request.date,
        tasks=request.tasks,
        weights=request.weights or [],
        settings=settings,
        profile=request.profile,
    )
    slots = [
        SlotOut(
            task_id=segment.task_id,
            title=segment.title,
            category=segment.category,
            start=localize(segment.start, tz),
            end=localize(segment.end, tz),
            score=segment.utility_score,
            features_snapshot=segment.features_snapshot,
            auto_generated=segment.auto_generated,
        )
        for segment in result.segments
    ]
    return PreviewResponse(slots=slots, warnings=result.warnings)
