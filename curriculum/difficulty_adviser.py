"""
Difficulty Adviser

Recommends an exercise difficulty on the five-level scale from recent
performance. Each signal adds a signed integer to an adjustment score,
which is mapped to a clamped index shift on the scale.
"""

from typing import Dict, List, NamedTuple, Optional, Union
import logging

from analytics.performance_analysis import PerformanceAnalyzer, filter_by_exercise_type
from config.settings import settings
from models.schemas import (
    DIFFICULTY_SCALE,
    AdjustmentSignal,
    DifficultyLevel,
    DifficultyRecommendation,
    ExerciseType,
    PerformanceAnalysis,
    PerformanceEntry,
)


class TimeThresholds(NamedTuple):
    """Average completion time bounds in seconds"""
    fast: float
    slow: float


# Every exercise type must appear; None disables the time signal
TIME_THRESHOLDS: Dict[ExerciseType, Optional[TimeThresholds]] = {
    ExerciseType.FILL_IN_THE_BLANK: TimeThresholds(fast=30, slow=120),
    ExerciseType.DRAG_DROP: TimeThresholds(fast=45, slow=180),
    ExerciseType.LISTENING: TimeThresholds(fast=60, slow=240),
    ExerciseType.TYPING: TimeThresholds(fast=60, slow=300),
    ExerciseType.QUIZ: TimeThresholds(fast=20, slow=90),
    ExerciseType.FLASHCARD: None,
}


class DifficultyAdviser:
    """Turns performance history into a difficulty recommendation"""

    # Average score thresholds
    SCORE_EXCELLENT = 90
    SCORE_GOOD = 75
    SCORE_AVERAGE = 60
    SCORE_POOR = 45

    # Consistency thresholds
    CONSISTENCY_HIGH = 80
    CONSISTENCY_LOW = 50

    # Trend threshold (score points between history halves)
    TREND_THRESHOLD = 10

    def __init__(self, min_history: Optional[int] = None):
        self.min_history = settings.MIN_PERFORMANCE_HISTORY if min_history is None else min_history
        self.analyzer = PerformanceAnalyzer()
        self.logger = logging.getLogger("DifficultyAdviser")

    def recommend(
        self,
        performance_history: List[PerformanceEntry],
        exercise_type: Union[ExerciseType, str],
        current_difficulty: Union[DifficultyLevel, str, None] = None
    ) -> DifficultyRecommendation:
        """
        Recommend a difficulty level for one exercise type.

        Args:
            performance_history: Performance entries (other exercise types are ignored)
            exercise_type: Exercise type being recommended for
            current_difficulty: Current level; defaults to settings.DEFAULT_DIFFICULTY

        Returns:
            DifficultyRecommendation with rationale and contributing signals
        """
        exercise_type = ExerciseType(exercise_type)
        current = DifficultyLevel(current_difficulty or settings.DEFAULT_DIFFICULTY)
        history = filter_by_exercise_type(performance_history, exercise_type)

        # Not enough evidence: never move new learners
        if len(history) < self.min_history:
            return DifficultyRecommendation(
                exercise_type=exercise_type,
                current_difficulty=current,
                recommended_difficulty=current,
                rationale=(
                    f"Not enough {exercise_type.value} history yet "
                    f"({len(history)} of {self.min_history} attempts); keeping {current.value}."
                )
            )

        analysis = self.analyzer.analyze(history)
        signals = self.score_signals(analysis, exercise_type)
        adjustment_score = sum(signal.contribution for signal in signals)
        recommended = self.shift_difficulty(current, adjustment_score)

        self.logger.debug(
            f"{exercise_type.value}: adjustment score {adjustment_score}, "
            f"{current.value} -> {recommended.value}"
        )

        return DifficultyRecommendation(
            exercise_type=exercise_type,
            current_difficulty=current,
            recommended_difficulty=recommended,
            rationale=self._build_rationale(analysis, signals, adjustment_score, current, recommended),
            should_adjust=recommended != current,
            adjustment_score=adjustment_score,
            signals=signals,
            analysis=analysis
        )

    def score_signals(self, analysis: PerformanceAnalysis, exercise_type: ExerciseType) -> List[AdjustmentSignal]:
        """Apply the rule table; zero-contribution signals are kept for the record"""
        signals = []

        average = analysis.average_score
        if average >= self.SCORE_EXCELLENT:
            contribution = 2
        elif average >= self.SCORE_GOOD:
            contribution = 1
        elif average < self.SCORE_POOR:
            contribution = -2
        elif average < self.SCORE_AVERAGE:
            contribution = -1
        else:
            contribution = 0
        signals.append(AdjustmentSignal(
            name="average_score",
            contribution=contribution,
            detail=f"average score {average:.0f}%"
        ))

        thresholds = TIME_THRESHOLDS[exercise_type]
        if thresholds is not None:
            average_time = analysis.average_time
            if average_time < thresholds.fast:
                contribution = 1
            elif average_time > thresholds.slow:
                contribution = -1
            else:
                contribution = 0
            signals.append(AdjustmentSignal(
                name="speed",
                contribution=contribution,
                detail=f"average time {average_time:.0f}s (fast < {thresholds.fast:.0f}s, slow > {thresholds.slow:.0f}s)"
            ))

        consistency = analysis.consistency
        if consistency > self.CONSISTENCY_HIGH:
            contribution = 1
        elif consistency < self.CONSISTENCY_LOW:
            contribution = -1
        else:
            contribution = 0
        signals.append(AdjustmentSignal(
            name="consistency",
            contribution=contribution,
            detail=f"consistency {consistency:.0f}/100"
        ))

        trend = analysis.improvement
        if trend > self.TREND_THRESHOLD:
            contribution = 1
        elif trend < -self.TREND_THRESHOLD:
            contribution = -1
        else:
            contribution = 0
        signals.append(AdjustmentSignal(
            name="trend",
            contribution=contribution,
            detail=f"trend {trend:+.1f} points"
        ))

        return signals

    @staticmethod
    def shift_for_score(adjustment_score: int) -> int:
        """|score| >= 3 moves two levels, |score| == 2 one level, otherwise none"""
        magnitude = abs(adjustment_score)
        if magnitude >= 3:
            steps = 2
        elif magnitude == 2:
            steps = 1
        else:
            steps = 0
        return steps if adjustment_score > 0 else -steps

    def shift_difficulty(self, current: DifficultyLevel, adjustment_score: int) -> DifficultyLevel:
        index = DIFFICULTY_SCALE.index(current) + self.shift_for_score(adjustment_score)
        index = max(0, min(len(DIFFICULTY_SCALE) - 1, index))
        return DIFFICULTY_SCALE[index]

    @staticmethod
    def _dominant_signal(signals: List[AdjustmentSignal], adjustment_score: int) -> Optional[AdjustmentSignal]:
        """Largest contribution in the direction of the score; first in table order on ties"""
        if adjustment_score == 0:
            return None
        direction = 1 if adjustment_score > 0 else -1
        aligned = [signal for signal in signals if signal.contribution * direction > 0]
        if not aligned:
            return None
        return max(aligned, key=lambda signal: abs(signal.contribution))

    def _build_rationale(
        self,
        analysis: PerformanceAnalysis,
        signals: List[AdjustmentSignal],
        adjustment_score: int,
        current: DifficultyLevel,
        recommended: DifficultyLevel
    ) -> str:
        average = round(analysis.average_score)
        dominant = self._dominant_signal(signals, adjustment_score)
        driver = f" Strongest signal: {dominant.detail}." if dominant else ""

        current_index = DIFFICULTY_SCALE.index(current)
        recommended_index = DIFFICULTY_SCALE.index(recommended)

        if recommended_index > current_index:
            return (
                f"Performance has been strong ({average}% average); "
                f"raising difficulty from {current.value} to {recommended.value}.{driver}"
            )
        if recommended_index < current_index:
            return (
                f"Lowering difficulty from {current.value} to {recommended.value} "
                f"to rebuild confidence ({average}% average).{driver}"
            )
        if self.shift_for_score(adjustment_score) != 0:
            bound = "highest" if adjustment_score > 0 else "lowest"
            return f"Already at the {bound} difficulty ({current.value}); keeping it.{driver}"
        return f"Current difficulty ({current.value}) fits the recent {average}% average.{driver}"

