"""
Progression Service

Caller-owned engine object: holds the current content graph snapshot and
answers every progression query against a ledger snapshot passed in by the
caller. Nothing derived from the ledger is kept between calls.
"""

from typing import Any, Dict, List, Optional, Union
from datetime import date
import json
import logging

from pydantic import ValidationError

from config.settings import Settings, settings as default_settings
from curriculum.availability import (
    all_module_progress,
    is_available,
    learning_statistics,
    next_available_lesson,
)
from curriculum.content_graph import ContentGraph, LessonView
from curriculum.difficulty_adviser import DifficultyAdviser
from models.errors import GraphNotInitializedError
from models.schemas import (
    ContentDefinition,
    DifficultyLevel,
    DifficultyRecommendation,
    ExerciseType,
    LearnerLedger,
    LearnerProgressReport,
    MilestoneCounters,
    MilestoneEvent,
    StreakState,
)
from motivation.milestones import MilestoneEngine
from motivation.points import learner_level, total_points
from motivation.streak_tracker import StreakTracker, activity_days, longest_run, resolve_timezone


def parse_ledger(blob: Union[LearnerLedger, Dict[str, Any], str, bytes, None]) -> LearnerLedger:
    """
    Parse a persisted ledger blob.

    Missing or malformed blobs become an empty ledger; the engine never
    treats bad persisted data as a fault.
    """
    logger = logging.getLogger("LedgerParser")
    if isinstance(blob, LearnerLedger):
        return blob
    if blob is None or blob == "" or blob == b"":
        return LearnerLedger()

    data = blob
    if isinstance(blob, (str, bytes)):
        try:
            data = json.loads(blob)
        except ValueError as e:
            logger.warning(f"Discarding unreadable ledger blob: {e}")
            return LearnerLedger()

    if not isinstance(data, dict):
        logger.warning(f"Discarding ledger blob of type {type(data).__name__}")
        return LearnerLedger()

    try:
        return LearnerLedger.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Discarding malformed ledger blob ({e.error_count()} errors)")
        return LearnerLedger()


class ProgressionService:
    """Learning progression queries over one content graph snapshot"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self._graph: Optional[ContentGraph] = None
        self.streak_tracker = StreakTracker(tz=resolve_timezone(self.settings.REFERENCE_TIMEZONE))
        self.milestone_engine = MilestoneEngine()
        self.difficulty_adviser = DifficultyAdviser(min_history=self.settings.MIN_PERFORMANCE_HISTORY)
        self.logger = logging.getLogger("ProgressionService")

    def load_content(self, content: Union[ContentDefinition, Dict[str, Any]]) -> ContentGraph:
        """
        Build a new graph and swap it in.

        The previous graph stays in place if the build fails.
        """
        graph = ContentGraph.from_content(content)
        self._graph = graph
        self.logger.info(f"Content loaded: {len(graph)} lessons, {len(graph.warnings)} warnings")
        return graph

    @property
    def graph(self) -> ContentGraph:
        if self._graph is None:
            raise GraphNotInitializedError()
        return self._graph

    @property
    def is_initialized(self) -> bool:
        return self._graph is not None

    # Availability

    def is_lesson_available(self, ledger: LearnerLedger, lesson_id: str) -> bool:
        return is_available(self.graph, ledger.completed_lesson_ids(), lesson_id)

    def next_lesson(self, ledger: LearnerLedger) -> Optional[LessonView]:
        return next_available_lesson(self.graph, ledger.completed_lesson_ids())

    # Streaks and milestones

    def streak(self, ledger: LearnerLedger, today: date) -> StreakState:
        return self.streak_tracker.compute_streak(ledger.activity_timestamps(), today)

    def counters(self, ledger: LearnerLedger) -> MilestoneCounters:
        """
        Milestone counters for a ledger snapshot.

        The streak counter is the longest streak, which never decreases as
        activity is appended; a broken and rebuilt streak does not re-fire.
        """
        graph = self.graph
        longest = longest_run(activity_days(ledger.activity_timestamps(), self.streak_tracker.tz))
        return MilestoneCounters(
            streak=longest,
            exercises=len(ledger.performance),
            lessons=sum(1 for lesson_id in ledger.completed_lesson_ids() if lesson_id in graph),
            points=total_points(graph, ledger)
        )

    def milestones_between(self, previous: LearnerLedger, current: LearnerLedger) -> List[MilestoneEvent]:
        """Milestones crossed when the ledger grew from `previous` to `current`"""
        return self.milestone_engine.evaluate(self.counters(previous), self.counters(current))

    # Difficulty

    def recommend_difficulty(
        self,
        ledger: LearnerLedger,
        exercise_type: Union[ExerciseType, str],
        current_difficulty: Union[DifficultyLevel, str, None] = None
    ) -> DifficultyRecommendation:
        return self.difficulty_adviser.recommend(ledger.performance, exercise_type, current_difficulty)

    # Reporting

    def progress_report(self, ledger: LearnerLedger, today: date) -> LearnerProgressReport:
        graph = self.graph
        completed = ledger.completed_lesson_ids()
        counters = self.counters(ledger)
        next_up = next_available_lesson(graph, completed)

        return LearnerProgressReport(
            statistics=learning_statistics(graph, completed),
            streak=self.streak(ledger, today),
            counters=counters,
            learner_level=learner_level(counters.points),
            next_lesson_id=next_up.id if next_up else None,
            module_progress=all_module_progress(graph, completed)
        )
