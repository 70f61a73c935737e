"""
Lesson Availability Resolution

Decides which lessons are unlocked for a completed set and which lesson
should be studied next. All functions are pure over (graph, completed set).
"""

from typing import AbstractSet, Iterable, List, Optional
import math

from curriculum.content_graph import ContentGraph, LessonView
from models.schemas import LearningStatistics, ModuleProgress


def _percentage(part: int, total: int) -> int:
    """Half-up rounded percentage; 0 for an empty total"""
    if total <= 0:
        return 0
    return int(math.floor(part / total * 100 + 0.5))


def is_available(graph: ContentGraph, completed: AbstractSet[str], lesson_id: str) -> bool:
    """
    Check whether every prerequisite of a lesson has been completed.

    Args:
        graph: Built content graph
        completed: Completed lesson ids
        lesson_id: Lesson to check

    Returns:
        True if the lesson is unlocked; False for unknown lessons
    """
    lesson = graph.get_lesson(lesson_id)
    if lesson is None:
        return False
    return all(prereq_id in completed for prereq_id in lesson.prerequisites)


def available_lessons(
    graph: ContentGraph,
    completed: AbstractSet[str],
    limit: Optional[int] = None
) -> List[LessonView]:
    """Incomplete, unlocked lessons in ascending order key"""
    if limit is not None and limit <= 0:
        return []
    available = []
    for lesson in graph.all_lessons():
        if lesson.id in completed:
            continue
        if is_available(graph, completed, lesson.id):
            available.append(lesson)
            if limit is not None and len(available) >= limit:
                break
    return available


def next_available_lesson(graph: ContentGraph, completed: AbstractSet[str]) -> Optional[LessonView]:
    """
    First incomplete lesson whose prerequisites are met.

    Returns None when everything is done or all remaining lessons are blocked.
    """
    candidates = available_lessons(graph, completed, limit=1)
    return candidates[0] if candidates else None


def module_progress(
    graph: ContentGraph,
    completed: AbstractSet[str],
    module_id: str
) -> Optional[ModuleProgress]:
    module = graph.get_module(module_id)
    if module is None:
        return None
    done = sum(1 for lesson_id in module.lesson_ids if lesson_id in completed)
    return ModuleProgress(
        module_id=module.id,
        total_lessons=module.total_lessons,
        completed_lessons=done,
        progress_percentage=_percentage(done, module.total_lessons)
    )


def all_module_progress(graph: ContentGraph, completed: AbstractSet[str]) -> List[ModuleProgress]:
    return [module_progress(graph, completed, module.id) for module in graph.all_modules()]


def learning_statistics(graph: ContentGraph, completed: Iterable[str]) -> LearningStatistics:
    """
    Aggregate progress statistics for a learner.

    Completed ids that are not in the graph are ignored.
    """
    lessons = graph.all_lessons()
    known_completed = {lesson_id for lesson_id in completed if lesson_id in graph}
    progress = all_module_progress(graph, known_completed)

    return LearningStatistics(
        total_lessons=len(lessons),
        completed_lessons=len(known_completed),
        total_modules=len(progress),
        completed_modules=sum(
            1 for item in progress
            if item.total_lessons > 0 and item.progress_percentage == 100
        ),
        total_estimated_time=sum(lesson.estimated_time for lesson in lessons),
        progress_percentage=_percentage(len(known_completed), len(lessons)),
        available_lessons=len(available_lessons(graph, known_completed))
    )


class AvailabilityResolver:
    """Availability queries bound to one graph snapshot"""

    def __init__(self, graph: ContentGraph):
        self.graph = graph

    def is_available(self, completed: AbstractSet[str], lesson_id: str) -> bool:
        return is_available(self.graph, completed, lesson_id)

    def next_available_lesson(self, completed: AbstractSet[str]) -> Optional[LessonView]:
        return next_available_lesson(self.graph, completed)

    def available_lessons(self, completed: AbstractSet[str], limit: Optional[int] = None) -> List[LessonView]:
        return available_lessons(self.graph, completed, limit)

    def module_progress(self, completed: AbstractSet[str], module_id: str) -> Optional[ModuleProgress]:
        return module_progress(self.graph, completed, module_id)

    def learning_statistics(self, completed: Iterable[str]) -> LearningStatistics:
        return learning_statistics(self.graph, completed)
