"""
Curriculum Module

Content graph construction, lesson availability and difficulty advice.
"""

from curriculum.content_graph import ContentGraph, LessonView, ModuleView, GraphWarning
from curriculum.availability import AvailabilityResolver, is_available, next_available_lesson
from curriculum.difficulty_adviser import DifficultyAdviser

__all__ = [
    "ContentGraph",
    "LessonView",
    "ModuleView",
    "GraphWarning",
    "AvailabilityResolver",
    "is_available",
    "next_available_lesson",
    "DifficultyAdviser",
]
