"""
Test Performance Analysis

Tests averages, consistency, improvement trend and weak/strong areas.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from datetime import datetime, timedelta
from analytics.performance_analysis import PerformanceAnalyzer, filter_by_exercise_type
from models.schemas import ExerciseType, PerformanceEntry

BASE_TIME = datetime(2024, 2, 1, 18, 0)


def entry(score, exercise_type=ExerciseType.QUIZ, time_spent=30, minute=0):
    return PerformanceEntry(
        exercise_type=exercise_type,
        score=score,
        time_spent=time_spent,
        timestamp=BASE_TIME + timedelta(minutes=minute)
    )


@pytest.fixture
def analyzer():
    return PerformanceAnalyzer()


def test_empty_history(analyzer):
    """Test empty history analyses to zeros"""
    analysis = analyzer.analyze([])

    assert analysis.average_score == 0
    assert analysis.consistency == 0
    assert analysis.total_attempts == 0
    assert analysis.weak_areas == []


def test_averages(analyzer):
    analysis = analyzer.analyze([
        entry(80, time_spent=20, minute=0),
        entry(90, time_spent=40, minute=1),
    ])

    assert analysis.average_score == pytest.approx(85)
    assert analysis.average_time == pytest.approx(30)
    assert analysis.total_attempts == 2


def test_consistency_is_100_minus_population_stddev():
    """Test consistency uses the population standard deviation"""
    # mean 95, pstdev 2
    assert PerformanceAnalyzer.calculate_consistency([95, 92, 98, 96, 94]) == pytest.approx(98)
    assert PerformanceAnalyzer.calculate_consistency([70, 70, 70]) == 100


def test_consistency_of_alternating_scores():
    assert PerformanceAnalyzer.calculate_consistency([0, 100, 0, 100]) == pytest.approx(50)
    assert PerformanceAnalyzer.calculate_consistency([]) == 0


def test_improvement_splits_at_half():
    """Test the odd middle element belongs to the second half"""
    # first half [10], second half [20, 30]
    assert PerformanceAnalyzer.calculate_improvement([10, 20, 30]) == pytest.approx(15)
    assert PerformanceAnalyzer.calculate_improvement([50]) == 0


def test_improvement_follows_timestamps(analyzer):
    """Test trend is computed on timestamp order, not input order"""
    analysis = analyzer.analyze([
        entry(90, minute=3),
        entry(40, minute=0),
        entry(85, minute=2),
        entry(45, minute=1),
    ])

    assert analysis.improvement == pytest.approx(45)


def test_weak_and_strong_areas(analyzer):
    analysis = analyzer.analyze([
        entry(40, ExerciseType.LISTENING, minute=0),
        entry(50, ExerciseType.LISTENING, minute=1),
        entry(95, ExerciseType.QUIZ, minute=2),
        entry(80, ExerciseType.TYPING, minute=3),
        entry(70, ExerciseType.DRAG_DROP, minute=4),
    ])

    assert [area.exercise_type for area in analysis.weak_areas] == [ExerciseType.LISTENING]
    assert [area.exercise_type for area in analysis.strong_areas] == [ExerciseType.QUIZ, ExerciseType.TYPING]


def test_filter_by_exercise_type():
    entries = [entry(50, ExerciseType.QUIZ), entry(60, ExerciseType.TYPING)]

    assert filter_by_exercise_type(entries, ExerciseType.TYPING) == [entries[1]]
    assert filter_by_exercise_type(entries, None) == entries


def test_camel_case_payload_accepted():
    """Test persisted camelCase entries validate"""
    parsed = PerformanceEntry.model_validate({
        "exerciseType": "fill-in-the-blank",
        "score": 88,
        "timeSpent": 42,
        "hintsUsed": 1,
        "timestamp": "2024-02-01T18:00:00Z",
    })

    assert parsed.exercise_type == ExerciseType.FILL_IN_THE_BLANK
    assert parsed.hints_used == 1
