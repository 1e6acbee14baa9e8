"""
Task classification: turns a task's category and free text into the flags
the scheduler and feature extractor rely on (meal, homework, games, school).
"""

import re
from typing import Optional

from .core.constants import MealType, TaskCategory
from .core.task import ScheduleTask, TaskMetadata

HOMEWORK_PATTERN = re.compile(
    r"домашн(яя|ее|ие)\s*(работа|задани)|дз\b|учить|задани"
    r"|\bhomework\b|\bassignment|\bstudy\b|\brevise\b",
    re.IGNORECASE,
)
GAMES_PATTERN = re.compile(
    r"игра?(ть)?|майнкрафт|дота|кс\b|шутер|консоль"
    r"|\bgam(e|es|ing)\b|minecraft|fortnite|\bconsole\b|playstation|\bxbox\b",
    re.IGNORECASE,
)
SCHOOL_PATTERN = re.compile(
    r"урок|школ|занят|репетиц|\bschool\b|\blessons?\b|\bclass(es)?\b|\btutor",
    re.IGNORECASE,
)
MEAL_PATTERNS = {
    MealType.BREAKFAST: re.compile(r"завтрак|\bbreakfast\b", re.IGNORECASE),
    MealType.LUNCH: re.compile(r"обед|\blunch\b", re.IGNORECASE),
    MealType.DINNER: re.compile(r"ужин|\bdinner\b|\bsupper\b", re.IGNORECASE),
}

BLOCK_CATEGORIES = (TaskCategory.SPORT_ACTIVITY, TaskCategory.HOUSEHOLD)


def _normalize_text(*parts: Optional[str]) -> str:
    return " ".join(part for part in parts if part).replace("ё", "е").replace("Ё", "е").lower()


class TaskClassifier:
    """Interface: derive ``TaskMetadata`` for a task."""

    def classify(self, task: ScheduleTask) -> TaskMetadata:
        raise NotImplementedError


class RuleBasedClassifier(TaskClassifier):
    """
    Pattern-based classifier for English and Russian task titles.

    Meal type comes from the task itself or its title. Homework and school
    flags only apply to Learning tasks; a text that reads as homework is
    never treated as the school activity.
    """

    def detect_meal_type(self, task: ScheduleTask) -> Optional[MealType]:
        if task.meal_type is not None:
            return task.meal_type
        for meal_type, pattern in MEAL_PATTERNS.items():
            if pattern.search(task.title or ""):
                return meal_type
        return None

    def classify(self, task: ScheduleTask) -> TaskMetadata:
        text = _normalize_text(task.title, task.description)
        category = task.category
        meal_type = self.detect_meal_type(task)

        is_homework = category == TaskCategory.LEARNING and bool(HOMEWORK_PATTERN.search(text))
        is_school = category == TaskCategory.LEARNING and not is_homework and bool(SCHOOL_PATTERN.search(text))
        is_games = category == TaskCategory.GAMES or bool(GAMES_PATTERN.search(text))

        if is_school or meal_type is not None or task.indivisible:
            is_indivisible = True
        elif category in BLOCK_CATEGORIES:
            is_indivisible = task.indivisible is not False
        else:
            is_indivisible = False

        return TaskMetadata(
            category=category,
            meal_type=meal_type,
            is_homework=is_homework,
            is_games=is_games,
            is_school_activity=is_school,
            is_indivisible=is_indivisible,
        )
