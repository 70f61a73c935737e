"""
Content Graph Implementation

Builds an immutable directed acyclic graph of lessons with prerequisites as
edges, plus the module index over it. The graph is built once from static
content and only read afterwards; a content update builds a new graph.
"""

from typing import Dict, Any, Iterator, List, Optional, Tuple, Union
from collections import deque
from dataclasses import dataclass
import logging
import re

from pydantic import ValidationError

from models.errors import ContentValidationError, CycleError, GraphNotInitializedError
from models.schemas import (
    ContentDefinition,
    LessonDefinition,
    LessonLevel,
    ModuleDefinition,
)

LessonInput = Union[LessonDefinition, Dict[str, Any]]
ModuleInput = Union[ModuleDefinition, Dict[str, Any]]

DEFAULT_LESSON_ORDER = 999
LESSON_ID_ORDER_PATTERN = re.compile(r"lesson-(\d+)")

# Base difficulty per lesson level
LEVEL_SCORES = {
    LessonLevel.BEGINNER: 1,
    LessonLevel.INTERMEDIATE: 2,
    LessonLevel.ADVANCED: 3,
}

# Cycle-check colours
_WHITE, _GREY, _BLACK = 0, 1, 2


@dataclass(frozen=True)
class GraphWarning:
    """Non-fatal data-quality issue found while building the graph"""
    kind: str
    source_id: str
    missing_id: str
    message: str


@dataclass(frozen=True)
class LessonView:
    """Lesson with derived graph attributes"""
    id: str
    title: str
    level: LessonLevel
    category: str
    description: str
    estimated_time: int
    prerequisites: Tuple[str, ...]
    dependents: Tuple[str, ...]
    next_lessons: Tuple[str, ...]
    order: float
    difficulty_score: float
    total_exercises: int
    definition: LessonDefinition

    @property
    def is_first_lesson(self) -> bool:
        return not self.prerequisites

    @property
    def is_last_lesson(self) -> bool:
        return not self.next_lessons

    @property
    def sort_key(self) -> Tuple[float, str]:
        return (self.order, self.id)


@dataclass(frozen=True)
class ModuleView:
    """Module with lesson ids filtered to known lessons, in declared order"""
    id: str
    title: str
    level: LessonLevel
    description: str
    lesson_ids: Tuple[str, ...]

    @property
    def total_lessons(self) -> int:
        return len(self.lesson_ids)

    @property
    def first_lesson_id(self) -> Optional[str]:
        return self.lesson_ids[0] if self.lesson_ids else None

    @property
    def last_lesson_id(self) -> Optional[str]:
        return self.lesson_ids[-1] if self.lesson_ids else None


def calculate_lesson_order(definition: LessonDefinition) -> float:
    """Explicit order wins; otherwise the number in a `lesson-N` id"""
    if definition.order is not None:
        return definition.order
    match = LESSON_ID_ORDER_PATTERN.search(definition.id)
    return int(match.group(1)) if match else DEFAULT_LESSON_ORDER


def calculate_difficulty_score(definition: LessonDefinition, prerequisite_count: int) -> float:
    """Score from level, prerequisite count and content size, to one decimal"""
    score = float(LEVEL_SCORES.get(definition.level, 1))
    score += prerequisite_count * 0.5
    score += len(definition.content.examples) * 0.1
    score += len(definition.exercises) * 0.2
    return round(score, 1)


class ContentGraph:
    """Read-only lesson/module graph with prerequisite and dependent indices"""

    def __init__(self):
        self._lessons: Dict[str, LessonView] = {}
        self._modules: Dict[str, ModuleView] = {}
        self._ordered_lesson_ids: Tuple[str, ...] = ()
        self._warnings: Tuple[GraphWarning, ...] = ()
        self._built = False
        self.logger = logging.getLogger("ContentGraph")

    @classmethod
    def build(
        cls,
        lessons: List[LessonInput],
        modules: List[ModuleInput] = ()
    ) -> "ContentGraph":
        """
        Validate content definitions and build a graph.

        Args:
            lessons: Lesson definitions (models or raw dicts)
            modules: Module definitions (models or raw dicts)

        Returns:
            Built ContentGraph

        Raises:
            ContentValidationError: Malformed records or duplicate ids
            CycleError: Prerequisite relation is not a DAG
        """
        graph = cls()
        graph._build(
            _validate_records(lessons, LessonDefinition, "lesson"),
            _validate_records(modules, ModuleDefinition, "module")
        )
        return graph

    @classmethod
    def from_content(cls, content: Union[ContentDefinition, Dict[str, Any]]) -> "ContentGraph":
        """Build from a `{lessons, modules}` content definition"""
        if isinstance(content, ContentDefinition):
            return cls.build(content.lessons, content.modules)
        if not isinstance(content, dict):
            raise ContentValidationError("Content definition must be a mapping with 'lessons' and 'modules'")
        return cls.build(content.get("lessons") or [], content.get("modules") or [])

    def _build(self, lessons: List[LessonDefinition], modules: List[ModuleDefinition]):
        definitions: Dict[str, LessonDefinition] = {}
        for lesson in lessons:
            if lesson.id in definitions:
                raise ContentValidationError(f"Duplicate lesson id: {lesson.id}", [lesson.id])
            definitions[lesson.id] = lesson

        warnings: List[GraphWarning] = []

        # Pass 1: resolve prerequisites, dropping dangling ids
        prerequisites: Dict[str, Tuple[str, ...]] = {}
        for lesson_id, lesson in definitions.items():
            resolved: List[str] = []
            for prereq_id in lesson.prerequisites:
                if prereq_id not in definitions:
                    warnings.append(GraphWarning(
                        kind="dangling_prerequisite",
                        source_id=lesson_id,
                        missing_id=prereq_id,
                        message=f"Lesson {lesson_id} has unknown prerequisite {prereq_id}"
                    ))
                    continue
                if prereq_id not in resolved:
                    resolved.append(prereq_id)
            prerequisites[lesson_id] = tuple(resolved)

        # Pass 2: single reverse scan for dependents
        dependents: Dict[str, List[str]] = {lesson_id: [] for lesson_id in definitions}
        for lesson_id, prereqs in prerequisites.items():
            for prereq_id in prereqs:
                dependents[prereq_id].append(lesson_id)

        cycle = _find_cycle(list(definitions), prerequisites)
        if cycle:
            self.logger.error(f"Circular dependency detected: {' -> '.join(cycle)}")
            raise CycleError(cycle)

        lesson_views: Dict[str, LessonView] = {}
        for lesson_id, lesson in definitions.items():
            prereqs = prerequisites[lesson_id]
            lesson_views[lesson_id] = LessonView(
                id=lesson_id,
                title=lesson.title,
                level=lesson.level,
                category=lesson.category,
                description=lesson.description,
                estimated_time=lesson.estimated_time,
                prerequisites=prereqs,
                dependents=tuple(dependents[lesson_id]),
                next_lessons=tuple(
                    next_id for next_id in dict.fromkeys(lesson.next_lessons) if next_id in definitions
                ),
                order=calculate_lesson_order(lesson),
                difficulty_score=calculate_difficulty_score(lesson, len(prereqs)),
                total_exercises=len(lesson.exercises),
                definition=lesson
            )

        module_views: Dict[str, ModuleView] = {}
        for module in modules:
            if module.id in module_views:
                raise ContentValidationError(f"Duplicate module id: {module.id}", [module.id])
            lesson_ids: List[str] = []
            for lesson_id in module.lessons:
                if lesson_id not in lesson_views:
                    warnings.append(GraphWarning(
                        kind="unknown_module_lesson",
                        source_id=module.id,
                        missing_id=lesson_id,
                        message=f"Module {module.id} references unknown lesson {lesson_id}"
                    ))
                    continue
                lesson_ids.append(lesson_id)
            module_views[module.id] = ModuleView(
                id=module.id,
                title=module.title,
                level=module.level,
                description=module.description,
                lesson_ids=tuple(lesson_ids)
            )

        for warning in warnings:
            self.logger.warning(warning.message)

        self._lessons = lesson_views
        self._modules = module_views
        self._ordered_lesson_ids = tuple(
            view.id for view in sorted(lesson_views.values(), key=lambda view: view.sort_key)
        )
        self._warnings = tuple(warnings)
        self._built = True

        self.logger.info(
            f"Built content graph with {len(lesson_views)} lessons across {len(module_views)} modules"
        )

    def _ensure_built(self):
        if not self._built:
            raise GraphNotInitializedError()

    @property
    def is_built(self) -> bool:
        return self._built

    @property
    def warnings(self) -> Tuple[GraphWarning, ...]:
        self._ensure_built()
        return self._warnings

    def get_lesson(self, lesson_id: str) -> Optional[LessonView]:
        self._ensure_built()
        return self._lessons.get(lesson_id)

    def get_module(self, module_id: str) -> Optional[ModuleView]:
        self._ensure_built()
        return self._modules.get(module_id)

    def prerequisites(self, lesson_id: str) -> Tuple[str, ...]:
        lesson = self.get_lesson(lesson_id)
        return lesson.prerequisites if lesson else ()

    def dependents(self, lesson_id: str) -> Tuple[str, ...]:
        lesson = self.get_lesson(lesson_id)
        return lesson.dependents if lesson else ()

    def all_lessons(self) -> List[LessonView]:
        """All lessons in ascending order key"""
        self._ensure_built()
        return [self._lessons[lesson_id] for lesson_id in self._ordered_lesson_ids]

    def all_modules(self) -> List[ModuleView]:
        """All modules in declaration order"""
        self._ensure_built()
        return list(self._modules.values())

    def lessons_in_module(self, module_id: str) -> List[LessonView]:
        """Lessons of a module in the module's declared order"""
        module = self.get_module(module_id)
        if module is None:
            return []
        return [self._lessons[lesson_id] for lesson_id in module.lesson_ids]

    def lessons_by_level(self, level: Union[LessonLevel, str]) -> List[LessonView]:
        level = LessonLevel(level)
        return [lesson for lesson in self.all_lessons() if lesson.level == level]

    def lessons_by_category(self, category: str) -> List[LessonView]:
        return [lesson for lesson in self.all_lessons() if lesson.category == category]

    def transitive_prerequisites(self, lesson_id: str) -> List[LessonView]:
        """
        Get every lesson that must be completed before a lesson.

        Args:
            lesson_id: ID of the target lesson

        Returns:
            Transitive prerequisites, foundation first
        """
        self._ensure_built()
        if lesson_id not in self._lessons:
            return []

        # BFS over prerequisite edges
        visited = set()
        chain: List[LessonView] = []
        queue = deque(self._lessons[lesson_id].prerequisites)

        while queue:
            prereq_id = queue.popleft()
            if prereq_id in visited:
                continue
            visited.add(prereq_id)
            prereq = self._lessons[prereq_id]
            chain.append(prereq)
            queue.extend(sub for sub in prereq.prerequisites if sub not in visited)

        chain.sort(key=lambda view: view.sort_key)
        return chain

    def search_lessons(self, query: str) -> List[LessonView]:
        """Case-insensitive match on title, description, category and content text"""
        needle = query.strip().lower()
        if not needle:
            return []
        return [
            lesson for lesson in self.all_lessons()
            if needle in lesson.title.lower()
            or needle in lesson.description.lower()
            or needle in lesson.category.lower()
            or needle in lesson.definition.content.text.lower()
        ]

    def __len__(self) -> int:
        self._ensure_built()
        return len(self._lessons)

    def __contains__(self, lesson_id: object) -> bool:
        self._ensure_built()
        return lesson_id in self._lessons


def _validate_records(records: Any, model, kind: str) -> list:
    """Validate raw records into models, collecting every structural error"""
    if records is None:
        return []
    if not isinstance(records, (list, tuple)):
        raise ContentValidationError(f"{kind} definitions must be a list")
    validated = []
    errors: List[str] = []
    for index, raw in enumerate(records):
        if isinstance(raw, model):
            validated.append(raw)
            continue
        try:
            validated.append(model.model_validate(raw))
        except ValidationError as e:
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"])
                errors.append(f"{kind}[{index}].{location}: {error['msg']}")
    if errors:
        raise ContentValidationError(
            f"Invalid {kind} definitions: {'; '.join(errors)}",
            errors
        )
    return validated


def _find_cycle(lesson_ids: List[str], prerequisites: Dict[str, Tuple[str, ...]]) -> Optional[List[str]]:
    """Iterative DFS with a colour map; returns one cycle path or None"""
    colour = {lesson_id: _WHITE for lesson_id in lesson_ids}

    for root_id in lesson_ids:
        if colour[root_id] != _WHITE:
            continue

        colour[root_id] = _GREY
        path: List[str] = [root_id]
        stack: List[Tuple[str, Iterator[str]]] = [(root_id, iter(prerequisites[root_id]))]

        while stack:
            lesson_id, pending = stack[-1]
            prereq_id = next(pending, None)
            if prereq_id is None:
                stack.pop()
                path.pop()
                colour[lesson_id] = _BLACK
                continue
            if colour[prereq_id] == _GREY:
                start = path.index(prereq_id)
                # Report in dependency direction: prerequisite -> dependent
                return list(reversed(path[start:] + [prereq_id]))
            if colour[prereq_id] == _WHITE:
                colour[prereq_id] = _GREY
                path.append(prereq_id)
                stack.append((prereq_id, iter(prerequisites[prereq_id])))
    return None
