"""
Performance Analysis Module

Extracts the signals used for difficulty decisions from a learner's
exercise performance history: average score and time, consistency,
improvement trend, and weak/strong exercise types.
"""

from typing import List, Dict, Optional
from collections import defaultdict
import statistics

from models.schemas import (
    AreaPerformance,
    ExerciseType,
    PerformanceAnalysis,
    PerformanceEntry,
)


class PerformanceAnalyzer:
    """Summarise performance entries into analysis signals"""

    # Score bands for weak/strong areas
    WEAK_AREA_BELOW = 60
    STRONG_AREA_ABOVE = 75

    def analyze(self, history: List[PerformanceEntry]) -> PerformanceAnalysis:
        """
        Analyze a performance history.

        Entries are ordered by timestamp before the trend split so the
        result does not depend on caller ordering.

        Args:
            history: Performance entries for one learner

        Returns:
            PerformanceAnalysis (all zeros for an empty history)
        """
        if not history:
            return PerformanceAnalysis()

        ordered = self.order_by_time(history)
        scores = [entry.score for entry in ordered]
        times = [entry.time_spent for entry in ordered]

        average_score = statistics.fmean(scores)
        average_time = statistics.fmean(times)

        return PerformanceAnalysis(
            average_score=average_score,
            average_time=average_time,
            consistency=self.calculate_consistency(scores),
            improvement=self.calculate_improvement(scores),
            weak_areas=self._areas(ordered, weak=True),
            strong_areas=self._areas(ordered, weak=False),
            total_attempts=len(ordered)
        )

    @staticmethod
    def order_by_time(history: List[PerformanceEntry]) -> List[PerformanceEntry]:
        return sorted(history, key=lambda entry: entry.timestamp)

    @staticmethod
    def calculate_consistency(scores: List[float]) -> float:
        """100 minus the population standard deviation, floored at 0"""
        if not scores:
            return 0.0
        return max(0.0, 100 - statistics.pstdev(scores))

    @staticmethod
    def calculate_improvement(scores: List[float]) -> float:
        """Mean of the second half minus mean of the first half"""
        if len(scores) < 2:
            return 0.0
        midpoint = len(scores) // 2
        return statistics.fmean(scores[midpoint:]) - statistics.fmean(scores[:midpoint])

    def _areas(self, history: List[PerformanceEntry], weak: bool) -> List[AreaPerformance]:
        scores_by_type: Dict[ExerciseType, List[float]] = defaultdict(list)
        for entry in history:
            scores_by_type[entry.exercise_type].append(entry.score)

        areas = []
        for exercise_type, scores in scores_by_type.items():
            average = statistics.fmean(scores)
            if weak and average < self.WEAK_AREA_BELOW:
                areas.append(AreaPerformance(exercise_type=exercise_type, average_score=average))
            elif not weak and average > self.STRONG_AREA_ABOVE:
                areas.append(AreaPerformance(exercise_type=exercise_type, average_score=average))

        areas.sort(key=lambda area: area.average_score, reverse=not weak)
        return areas


def filter_by_exercise_type(
    history: List[PerformanceEntry],
    exercise_type: Optional[ExerciseType]
) -> List[PerformanceEntry]:
    """Entries of one exercise type; all entries when type is None"""
    if exercise_type is None:
        return list(history)
    return [entry for entry in history if entry.exercise_type == exercise_type]
