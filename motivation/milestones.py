"""
Milestone Engine

Detects threshold crossings on non-decreasing learner counters. Every
threshold strictly above the previous value and at or below the current
value fires exactly once, so a large jump emits all crossed milestones and
replaying the same ledger emits nothing new.
"""

from typing import Dict, Iterable, List, Optional, Union
import logging

from models.schemas import (
    MilestoneCategory,
    MilestoneCounters,
    MilestoneDefinition,
    MilestoneEvent,
    NextMilestone,
)


def _table(definitions: Iterable[MilestoneDefinition]) -> Dict[int, MilestoneDefinition]:
    return {definition.threshold: definition for definition in definitions}


STREAK_MILESTONES = _table([
    MilestoneDefinition(id="streak_3", name="Getting Started", description="3-day learning streak", threshold=3, points=50),
    MilestoneDefinition(id="streak_7", name="Week Warrior", description="1-week learning streak", threshold=7, points=150),
    MilestoneDefinition(id="streak_14", name="Two Week Champion", description="2-week learning streak", threshold=14, points=300),
    MilestoneDefinition(id="streak_30", name="Monthly Master", description="30-day learning streak", threshold=30, points=750),
    MilestoneDefinition(id="streak_50", name="Streak Legend", description="50-day learning streak", threshold=50, points=1250),
    MilestoneDefinition(id="streak_100", name="Century Club", description="100-day learning streak", threshold=100, points=2500),
    MilestoneDefinition(id="streak_365", name="Year Master", description="1-year learning streak", threshold=365, points=10000),
])

EXERCISE_MILESTONES = _table([
    MilestoneDefinition(id="exercises_10", name="First Steps", description="Complete 10 exercises", threshold=10, points=100),
    MilestoneDefinition(id="exercises_50", name="Exercise Enthusiast", description="Complete 50 exercises", threshold=50, points=300),
    MilestoneDefinition(id="exercises_100", name="Century Achiever", description="Complete 100 exercises", threshold=100, points=500),
    MilestoneDefinition(id="exercises_250", name="Exercise Master", description="Complete 250 exercises", threshold=250, points=1000),
    MilestoneDefinition(id="exercises_500", name="Exercise Legend", description="Complete 500 exercises", threshold=500, points=2000),
])

LESSON_MILESTONES = _table([
    MilestoneDefinition(id="lessons_5", name="Learning Begins", description="Complete 5 lessons", threshold=5, points=200),
    MilestoneDefinition(id="lessons_10", name="Knowledge Seeker", description="Complete 10 lessons", threshold=10, points=400),
    MilestoneDefinition(id="lessons_25", name="Lesson Master", description="Complete 25 lessons", threshold=25, points=800),
])

POINT_MILESTONES = _table([
    MilestoneDefinition(id="points_1000", name="Point Collector", description="Earn 1,000 points", threshold=1000, points=100),
    MilestoneDefinition(id="points_5000", name="Point Master", description="Earn 5,000 points", threshold=5000, points=300),
    MilestoneDefinition(id="points_10000", name="Point Legend", description="Earn 10,000 points", threshold=10000, points=500),
])

# Exhaustive: one table per category
MILESTONE_TABLES: Dict[MilestoneCategory, Dict[int, MilestoneDefinition]] = {
    MilestoneCategory.STREAK: STREAK_MILESTONES,
    MilestoneCategory.EXERCISES: EXERCISE_MILESTONES,
    MilestoneCategory.LESSONS: LESSON_MILESTONES,
    MilestoneCategory.POINTS: POINT_MILESTONES,
}


def crossed_milestones(
    previous_value: Union[int, float],
    current_value: Union[int, float],
    thresholds: Iterable[int]
) -> List[int]:
    """
    Thresholds T with previous_value < T <= current_value, ascending.

    Args:
        previous_value: Counter value already evaluated
        current_value: Counter value now
        thresholds: Threshold table (any order, duplicates ignored)

    Returns:
        Crossed thresholds, each once; empty if the counter did not grow
    """
    if current_value <= previous_value:
        return []
    return sorted(
        threshold for threshold in set(thresholds)
        if previous_value < threshold <= current_value
    )


class MilestoneEngine:
    """Evaluates each learner counter against its own threshold table"""

    def __init__(self, tables: Optional[Dict[MilestoneCategory, Dict[int, MilestoneDefinition]]] = None):
        self.tables = dict(tables) if tables is not None else dict(MILESTONE_TABLES)
        missing = [category.value for category in MilestoneCategory if category not in self.tables]
        if missing:
            raise ValueError(f"Missing milestone tables for: {', '.join(missing)}")
        self.logger = logging.getLogger("MilestoneEngine")

    def crossed(
        self,
        category: MilestoneCategory,
        previous_value: int,
        current_value: int
    ) -> List[MilestoneEvent]:
        table = self.tables[MilestoneCategory(category)]
        return [
            MilestoneEvent(category=category, threshold=threshold, milestone=table[threshold])
            for threshold in crossed_milestones(previous_value, current_value, table)
        ]

    def evaluate(
        self,
        previous: MilestoneCounters,
        current: MilestoneCounters
    ) -> List[MilestoneEvent]:
        """
        Milestones crossed between two counter snapshots.

        Returns:
            Events grouped by category (streak, exercises, lessons, points),
            ascending threshold within each category
        """
        events: List[MilestoneEvent] = []
        for category in MilestoneCategory:
            events.extend(self.crossed(category, previous.value_for(category), current.value_for(category)))

        if events:
            self.logger.info(f"Milestones crossed: {', '.join(event.milestone.id for event in events)}")
        return events

    def next_milestone(self, category: MilestoneCategory, value: int) -> Optional[NextMilestone]:
        """Closest threshold above the value, or None once every milestone is reached"""
        category = MilestoneCategory(category)
        table = self.tables[category]
        upcoming = [threshold for threshold in sorted(table) if threshold > value]
        if not upcoming:
            return None
        threshold = upcoming[0]
        return NextMilestone(category=category, milestone=table[threshold], remaining=threshold - value)
