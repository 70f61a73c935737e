"""
Points and Learner Levels

Awards points for exercises, lessons and modules, and maps a point total
onto the learner level ladder. Points are always summed from the ledger.
"""

from typing import List, NamedTuple, Optional

from curriculum.availability import all_module_progress
from curriculum.content_graph import ContentGraph
from models.schemas import LearnerLedger, LearnerLevel, PerformanceEntry


class PointValues:
    """Point awards per activity"""
    EXCELLENT = 100     # 90%+ score
    GOOD = 75           # 75-89%
    AVERAGE = 50        # 60-74%
    POOR = 25           # 45-59%
    MINIMAL = 10        # below 45%
    PERFECT_SCORE_BONUS = 50
    FIRST_TRY_BONUS = 30
    SPEED_BONUS_FAST = 25
    SPEED_BONUS_VERY_FAST = 50
    LESSON_COMPLETION = 200
    MODULE_COMPLETION = 500


class LevelBand(NamedTuple):
    level: int
    name: str
    min_points: int


LEVEL_BANDS: List[LevelBand] = [
    LevelBand(1, "Beginner", 0),
    LevelBand(2, "Student", 500),
    LevelBand(3, "Learner", 1500),
    LevelBand(4, "Scholar", 3000),
    LevelBand(5, "Expert", 5000),
    LevelBand(6, "Master", 8000),
    LevelBand(7, "Grandmaster", 12000),
    LevelBand(8, "Legend", 20000),
]


def calculate_exercise_points(entry: PerformanceEntry, expected_time: Optional[float] = None) -> int:
    """
    Points for one exercise result.

    Args:
        entry: Performance entry
        expected_time: Expected completion time in seconds; enables speed bonus

    Returns:
        Total points including bonuses
    """
    score = entry.score
    if score >= 90:
        points = PointValues.EXCELLENT
    elif score >= 75:
        points = PointValues.GOOD
    elif score >= 60:
        points = PointValues.AVERAGE
    elif score >= 45:
        points = PointValues.POOR
    else:
        points = PointValues.MINIMAL

    if score == 100:
        points += PointValues.PERFECT_SCORE_BONUS

    if expected_time and entry.time_spent:
        ratio = entry.time_spent / expected_time
        if ratio <= 0.5:
            points += PointValues.SPEED_BONUS_VERY_FAST
        elif ratio <= 0.75:
            points += PointValues.SPEED_BONUS_FAST

    if entry.attempts == 1:
        points += PointValues.FIRST_TRY_BONUS

    return points


def total_points(graph: ContentGraph, ledger: LearnerLedger) -> int:
    """Exercise points plus lesson and module completion awards"""
    completed = {lesson_id for lesson_id in ledger.completed_lesson_ids() if lesson_id in graph}
    points = sum(calculate_exercise_points(entry) for entry in ledger.performance)
    points += len(completed) * PointValues.LESSON_COMPLETION
    points += PointValues.MODULE_COMPLETION * sum(
        1 for progress in all_module_progress(graph, completed)
        if progress.total_lessons > 0 and progress.completed_lessons == progress.total_lessons
    )
    return points


def learner_level(points: int) -> LearnerLevel:
    """Level band for a point total with progress toward the next band"""
    points = max(0, points)
    current = LEVEL_BANDS[0]
    for band in LEVEL_BANDS:
        if points >= band.min_points:
            current = band

    following = LEVEL_BANDS[current.level] if current.level < len(LEVEL_BANDS) else None
    if following is None:
        progress = 100.0
        points_to_next = 0
    else:
        span = following.min_points - current.min_points
        progress = min(100.0, max(0.0, (points - current.min_points) / span * 100))
        points_to_next = following.min_points - points

    return LearnerLevel(
        level=current.level,
        name=current.name,
        min_points=current.min_points,
        progress=round(progress, 2),
        points_to_next=points_to_next,
        next_level_name=following.name if following else None
    )
