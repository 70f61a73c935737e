"""Streaks, Milestones and Points

Learner motivation counters derived from the activity ledger.
"""

from motivation.streak_tracker import StreakTracker, compute_streak
from motivation.milestones import MilestoneEngine, crossed_milestones, MILESTONE_TABLES
from motivation.points import calculate_exercise_points, learner_level, total_points

__all__ = [
    "StreakTracker",
    "compute_streak",
    "MilestoneEngine",
    "crossed_milestones",
    "MILESTONE_TABLES",
    "calculate_exercise_points",
    "learner_level",
    "total_points",
]
