"""
Plain-language summaries of a placement's strongest features.
"""

from typing import List, Sequence

from ..scheduling.core.constants import FEATURE_NAMES

FEATURE_SUMMARIES = {
    "priority": ("the task is important today", "the task can be more relaxed today"),
    "habit_alignment": ("it matches your usual routine", "it changes the usual routine"),
    "circadian_fit": ("it fits your energy level at that time", "you might feel sleepy at that time"),
    "deadline_pressure": ("a deadline is getting closer", "there is no rush from deadlines"),
    "context_switch": ("it follows a similar activity", "switching from another activity may be harder"),
    "daily_load": ("it keeps the rest of the day lighter", "other parts of the day are already busy"),
    "meal_conflict": ("it lines up with meal time", "it keeps time free for meals"),
    "school_conflict": ("it fits around the school day", "it avoids school lesson time"),
    "sleep_conflict": ("it respects your sleep schedule", "it would interrupt your sleep time"),
    "activity_target_gap": ("it helps hit your activity goal", "you already met the activity goal"),
}
BALANCED = "it keeps the plan balanced"

TRANSLATIONS = {
    "ru": {
        "the task is important today": "задача сегодня особенно важна",
        "the task can be more relaxed today": "эту задачу можно сделать более спокойно",
        "it matches your usual routine": "это соответствует твоему привычному расписанию",
        "it changes the usual routine": "это немного меняет привычный распорядок",
        "it fits your energy level at that time": "это подходит под твой уровень энергии в это время",
        "you might feel sleepy at that time": "в это время ты можешь чувствовать сонливость",
        "a deadline is getting closer": "срок выполнения уже близко",
        "there is no rush from deadlines": "пока нет спешки из-за дедлайнов",
        "it follows a similar activity": "оно идёт вслед за похожим занятием",
        "switching from another activity may be harder": "переключаться с другого занятия может быть сложнее",
        "it keeps the rest of the day lighter": "так остальная часть дня будет легче",
        "other parts of the day are already busy": "другие части дня уже заняты делами",
        "it lines up with meal time": "это совпадает со временем приёма пищи",
        "it keeps time free for meals": "это оставляет достаточно времени на еду",
        "it fits around the school day": "это удобно вписывается в школьный день",
        "it avoids school lesson time": "это не мешает школьным урокам",
        "it respects your sleep schedule": "это не нарушает твой режим сна",
        "it would interrupt your sleep time": "это может помешать твоему сну",
        "it helps hit your activity goal": "это помогает выполнить твою цель по активности",
        "you already met the activity goal": "цель по активности уже выполнена",
        "it keeps the plan balanced": "сохранить сбалансированный день",
    },
}

AUTO_MEAL_TEXT = {
    "en": "Automatic {title} block inside the usual meal window.",
    "ru": "Автоматический блок «{title}» в обычное время приёма пищи.",
}


def summarize_feature(name: str, value: float) -> str:
    summaries = FEATURE_SUMMARIES.get(name)
    if summaries is None:
        return BALANCED
    return summaries[0] if value >= 0 else summaries[1]


def translate_summary(summary: str, locale: str) -> str:
    return TRANSLATIONS.get(locale, {}).get(summary, summary)


def top_feature_summaries(features_snapshot: Sequence[float], limit: int = 3) -> List[str]:
    """Summaries for the ``limit`` features with the largest magnitude."""
    named = list(zip(FEATURE_NAMES, features_snapshot))
    named.sort(key=lambda item: abs(item[1]), reverse=True)
    return [summarize_feature(name, value) for name, value in named[:limit]]


def fallback_explanation(title: str, start: str, end: str, summaries: Sequence[str], locale: str = "en") -> str:
    reasons = [translate_summary(summary, locale) for summary in summaries if summary][:2]
    if locale == "ru":
        reason = " и ".join(reasons) if reasons else translate_summary(BALANCED, "ru")
        return f"Мы запланировали «{title}» с {start} до {end}, чтобы {reason}."
    reason = " and ".join(reasons) if reasons else BALANCED
    return f"Placed {title} between {start} and {end} because {reason}."


def auto_meal_explanation(title: str, locale: str = "en") -> str:
    template = AUTO_MEAL_TEXT.get(locale, AUTO_MEAL_TEXT["en"])
    return template.format(title=title)
