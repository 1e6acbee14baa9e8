"""
Circadian fit table: how well an hour of the day suits a kind of task.

Each curve is an ordered list of bands ``(lower, upper, value, upper_closed)``
plus a default. Hours are decimal; ``None`` leaves a side open. The first
matching band wins.
"""

from ..core.constants import TaskCategory

HOMEWORK = "homework"
GAMES = "games"

CIRCADIAN_CURVES = {
    HOMEWORK: ([(16, 19.5, 1.0, False), (19.5, 21, 0.2, False)], -0.5),
    TaskCategory.RELAXING: ([(18, 21, 1.0, False), (16, 18, 0.5, False), (None, 10, -0.5, False)], 0.0),
    GAMES: ([(17, 20, 1.0, True), (12, 17, 0.0, False), (None, 12, -1.0, False)], 0.0),
    TaskCategory.ADMIN_ERRANDS: ([(12, 17, 0.6, False), (None, 9, -0.3, False)], 0.0),
    TaskCategory.SPORT_ACTIVITY: ([(17, 20, 1.0, False), (10, 17, 0.0, False)], -0.5),
    TaskCategory.CREATIVE: ([(18, 21, 0.7, False), (14, 18, 0.3, False), (None, 10, -0.2, False)], 0.0),
    TaskCategory.OUTDOOR_PLAY: ([(16, 20, 1.0, False), (10, 16, 0.5, False), (None, 9, -0.3, False)], 0.0),
    TaskCategory.SOCIAL: ([(18, 22, 0.8, False), (12, 18, 0.4, False), (None, 10, -0.2, False)], 0.0),
    TaskCategory.DEEP_WORK: (
        [(9, 12, 1.0, False), (14, 17, 0.7, False), (None, 9, 0.3, False), (19, None, -0.5, False)], 0.0
    ),
    TaskCategory.HOUSEHOLD: ([(9, 12, 0.6, False), (17, 20, 0.5, False), (None, 8, -0.4, False)], 0.0),
    TaskCategory.COMMUTE: ([(7, 9, 0.8, False), (17, 19, 0.7, False)], 0.0),
    TaskCategory.HEALTHCARE: ([(9, 12, 0.7, False), (14, 17, 0.6, False)], 0.0),
}


def _in_band(hour: float, lower, upper, upper_closed: bool) -> bool:
    if lower is not None and hour < lower:
        return False
    if upper is not None:
        return hour <= upper if upper_closed else hour < upper
    return True


def lookup_curve(key, hour: float) -> float:
    bands, default = CIRCADIAN_CURVES.get(key, ([], 0.0))
    for lower, upper, value, upper_closed in bands:
        if _in_band(hour, lower, upper, upper_closed):
            return value
    return default


def circadian_fit(metadata, hour: float, in_own_meal_window: bool = False) -> float:
    if metadata.is_meal:
        return 1.0 if in_own_meal_window else -1.0
    if metadata.category == TaskCategory.LEARNING and metadata.is_homework:
        return lookup_curve(HOMEWORK, hour)
    if metadata.category == TaskCategory.RELAXING:
        return lookup_curve(TaskCategory.RELAXING, hour)
    if metadata.category == TaskCategory.GAMES or metadata.is_games:
        return lookup_curve(GAMES, hour)
    return lookup_curve(metadata.category, hour)
