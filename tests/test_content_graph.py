"""
Test Content Graph

Tests graph construction, dependents index, cycle rejection, dangling
reference filtering, ordering and read-only queries.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from curriculum.content_graph import ContentGraph, calculate_lesson_order
from models.errors import ContentValidationError, CycleError, GraphNotInitializedError
from models.schemas import ContentDefinition, LessonDefinition, LessonLevel


def make_lesson(lesson_id, prerequisites=None, level="beginner", category="vocabulary", **extra):
    lesson = {
        "id": lesson_id,
        "title": f"Lesson {lesson_id}",
        "level": level,
        "category": category,
        "prerequisites": prerequisites or [],
        "estimatedTime": 15,
    }
    lesson.update(extra)
    return lesson


@pytest.fixture
def sample_lessons():
    """Small prerequisite DAG: 001 -> 002 -> 004, 001 -> 003 -> 004"""
    return [
        make_lesson("lesson-001"),
        make_lesson("lesson-002", ["lesson-001"], category="grammar"),
        make_lesson("lesson-003", ["lesson-001"], level="intermediate"),
        make_lesson("lesson-004", ["lesson-002", "lesson-003"], level="advanced"),
    ]


@pytest.fixture
def sample_modules():
    return [
        {"id": "module-1", "title": "Basics", "level": "beginner",
         "lessons": ["lesson-002", "lesson-001"]},
        {"id": "module-2", "title": "Next", "level": "intermediate",
         "lessons": ["lesson-003", "lesson-004"]},
    ]


@pytest.fixture
def graph(sample_lessons, sample_modules):
    return ContentGraph.build(sample_lessons, sample_modules)


def test_build_indexes_lessons_and_modules(graph):
    """Test lessons and modules are reachable by id"""
    assert graph.get_lesson("lesson-001").title == "Lesson lesson-001"
    assert graph.get_module("module-1").title == "Basics"
    assert len(graph) == 4


def test_unknown_ids_return_none(graph):
    """Test not-found is an explicit absent value"""
    assert graph.get_lesson("lesson-999") is None
    assert graph.get_module("module-x") is None
    assert graph.prerequisites("lesson-999") == ()
    assert graph.dependents("lesson-999") == ()


def test_dependents_mirror_prerequisites(graph):
    """Test L in dependents(M) iff M in prerequisites(L)"""
    lesson_ids = [lesson.id for lesson in graph.all_lessons()]
    for lesson_id in lesson_ids:
        for other_id in lesson_ids:
            assert (lesson_id in graph.dependents(other_id)) == (other_id in graph.prerequisites(lesson_id))


def test_dependents_values(graph):
    """Test dependents follow lesson declaration order"""
    assert graph.dependents("lesson-001") == ("lesson-002", "lesson-003")
    assert graph.dependents("lesson-004") == ()


def test_cycle_is_rejected():
    """Test A -> B -> C -> A fails construction with the cycle path"""
    lessons = [
        make_lesson("A", ["C"]),
        make_lesson("B", ["A"]),
        make_lesson("C", ["B"]),
    ]

    with pytest.raises(CycleError) as exc_info:
        ContentGraph.build(lessons, [])

    cycle = exc_info.value.cycle
    assert cycle[0] == cycle[-1]
    assert set(cycle) == {"A", "B", "C"}
    assert len(cycle) == 4


def test_cycle_error_is_deterministic():
    """Test the same cyclic fixture reports the same cycle every time"""
    lessons = [make_lesson("A", ["C"]), make_lesson("B", ["A"]), make_lesson("C", ["B"])]

    reported = set()
    for _ in range(3):
        with pytest.raises(CycleError) as exc_info:
            ContentGraph.build(lessons, [])
        reported.add(tuple(exc_info.value.cycle))

    assert reported == {("A", "B", "C", "A")}


def test_self_prerequisite_is_a_cycle():
    """Test a lesson requiring itself is rejected"""
    with pytest.raises(CycleError):
        ContentGraph.build([make_lesson("A", ["A"])], [])


def test_cycle_error_is_content_validation_error():
    """Test cycle errors belong to the initialization error family"""
    with pytest.raises(ContentValidationError):
        ContentGraph.build([make_lesson("A", ["B"]), make_lesson("B", ["A"])], [])


def test_dangling_prerequisite_is_dropped_with_warning():
    """Test unknown prerequisite ids are filtered, not fatal"""
    graph = ContentGraph.build([
        make_lesson("lesson-001", ["lesson-404"]),
        make_lesson("lesson-002", ["lesson-001"]),
    ], [])

    assert graph.prerequisites("lesson-001") == ()
    assert len(graph.warnings) == 1
    warning = graph.warnings[0]
    assert warning.kind == "dangling_prerequisite"
    assert warning.source_id == "lesson-001"
    assert warning.missing_id == "lesson-404"


def test_module_unknown_lessons_filtered(sample_lessons):
    """Test module lesson lists drop unknown ids and keep declared order"""
    graph = ContentGraph.build(sample_lessons, [
        {"id": "module-1", "title": "Basics", "lessons": ["lesson-003", "lesson-404", "lesson-001"]}
    ])

    module = graph.get_module("module-1")
    assert module.lesson_ids == ("lesson-003", "lesson-001")
    assert module.total_lessons == 2
    assert module.first_lesson_id == "lesson-003"
    assert module.last_lesson_id == "lesson-001"
    assert [w.kind for w in graph.warnings] == ["unknown_module_lesson"]


def test_module_lessons_keep_declared_order(graph):
    """Test module ordering is declaration order, not order key"""
    lessons = graph.lessons_in_module("module-1")
    assert [lesson.id for lesson in lessons] == ["lesson-002", "lesson-001"]
    assert graph.lessons_in_module("module-x") == []


def test_all_lessons_sorted_by_order_key():
    """Test all_lessons is ascending by order with id tie-break"""
    graph = ContentGraph.build([
        make_lesson("lesson-010"),
        make_lesson("lesson-002"),
        make_lesson("intro", order=1),
        make_lesson("zeta"),
        make_lesson("alpha"),
    ], [])

    assert [lesson.id for lesson in graph.all_lessons()] == [
        "intro", "lesson-002", "lesson-010", "alpha", "zeta"
    ]


def test_calculate_lesson_order():
    """Test explicit order, id-derived order and default"""
    assert calculate_lesson_order(LessonDefinition(**make_lesson("lesson-007"))) == 7
    assert calculate_lesson_order(LessonDefinition(**make_lesson("lesson-007", order=2.5))) == 2.5
    assert calculate_lesson_order(LessonDefinition(**make_lesson("greetings"))) == 999


def test_difficulty_score():
    """Test difficulty score from level, prerequisites and content size"""
    graph = ContentGraph.build([
        make_lesson("lesson-001"),
        make_lesson(
            "lesson-002",
            ["lesson-001"],
            level="intermediate",
            content={"text": "Particles", "examples": [{"korean": "은"}, {"korean": "는"}]},
            exercises=[{"type": "quiz"}, {"type": "typing"}, {"type": "listening"}],
        ),
    ], [])

    assert graph.get_lesson("lesson-001").difficulty_score == 1.0
    # 2 + 0.5 + 2 * 0.1 + 3 * 0.2
    assert graph.get_lesson("lesson-002").difficulty_score == 3.3
    assert graph.get_lesson("lesson-002").total_exercises == 3


def test_first_lesson_flag(graph):
    """Test is_first_lesson follows empty prerequisites"""
    assert graph.get_lesson("lesson-001").is_first_lesson is True
    assert graph.get_lesson("lesson-004").is_first_lesson is False


def test_malformed_lesson_rejected():
    """Test structural validation failures are initialization errors"""
    with pytest.raises(ContentValidationError) as exc_info:
        ContentGraph.build([{"id": "lesson-001", "level": "expert"}], [])

    errors = exc_info.value.errors
    assert any("title" in error for error in errors)
    assert any("level" in error for error in errors)


def test_duplicate_lesson_id_rejected():
    """Test duplicate lesson ids fail construction"""
    with pytest.raises(ContentValidationError, match="Duplicate lesson id"):
        ContentGraph.build([make_lesson("lesson-001"), make_lesson("lesson-001")], [])


def test_duplicate_module_id_rejected(sample_lessons):
    """Test duplicate module ids fail construction"""
    with pytest.raises(ContentValidationError, match="Duplicate module id"):
        ContentGraph.build(sample_lessons, [{"id": "m"}, {"id": "m"}])


def test_unbuilt_graph_raises():
    """Test queries on an unbuilt graph raise an initialization error"""
    graph = ContentGraph()

    with pytest.raises(GraphNotInitializedError):
        graph.get_lesson("lesson-001")
    with pytest.raises(GraphNotInitializedError):
        graph.all_lessons()


def test_from_content_accepts_dict_and_model(sample_lessons, sample_modules):
    """Test content definitions as dict or model"""
    from_dict = ContentGraph.from_content({"lessons": sample_lessons, "modules": sample_modules})
    from_model = ContentGraph.from_content(ContentDefinition(lessons=sample_lessons, modules=sample_modules))

    assert [l.id for l in from_dict.all_lessons()] == [l.id for l in from_model.all_lessons()]


def test_from_content_rejects_non_mapping():
    with pytest.raises(ContentValidationError):
        ContentGraph.from_content(["lesson-001"])


def test_transitive_prerequisites(graph):
    """Test BFS over prerequisites, foundation first"""
    chain = graph.transitive_prerequisites("lesson-004")
    assert [lesson.id for lesson in chain] == ["lesson-001", "lesson-002", "lesson-003"]
    assert graph.transitive_prerequisites("lesson-001") == []


def test_lessons_by_level_and_category(graph):
    assert [l.id for l in graph.lessons_by_level("intermediate")] == ["lesson-003"]
    assert [l.id for l in graph.lessons_by_level(LessonLevel.ADVANCED)] == ["lesson-004"]
    assert [l.id for l in graph.lessons_by_category("grammar")] == ["lesson-002"]


def test_search_lessons(graph):
    """Test case-insensitive search"""
    assert [l.id for l in graph.search_lessons("GRAMMAR")] == ["lesson-002"]
    assert graph.search_lessons("  ") == []


def test_rebuild_produces_independent_graph(sample_lessons):
    """Test a content update builds a new graph rather than patching"""
    first = ContentGraph.build(sample_lessons, [])
    second = ContentGraph.build(sample_lessons + [make_lesson("lesson-005", ["lesson-004"])], [])

    assert first.dependents("lesson-004") == ()
    assert second.dependents("lesson-004") == ("lesson-005",)


def test_long_chain_declared_dependent_first_builds():
    """Test a deep acyclic chain does not exhaust the call stack"""
    chain = [make_lesson("l0")] + [make_lesson(f"l{i}", [f"l{i - 1}"]) for i in range(1, 1500)]

    graph = ContentGraph.build(list(reversed(chain)), [])

    assert len(graph) == 1500
    assert graph.prerequisites("l1499") == ("l1498",)
    assert len(graph.transitive_prerequisites("l1499")) == 1499


def test_long_cycle_is_rejected():
    """Test a deep cycle is still reported as a closed path"""
    lessons = [make_lesson(f"l{i}", [f"l{(i - 1) % 1500}"]) for i in range(1500)]

    with pytest.raises(CycleError) as exc_info:
        ContentGraph.build(list(reversed(lessons)), [])

    cycle = exc_info.value.cycle
    assert cycle[0] == cycle[-1]
    assert len(cycle) == 1501


@pytest.mark.parametrize("content", [
    {"lessons": 5, "modules": []},
    {"lessons": [], "modules": "module-1"},
    {"lessons": {"id": "lesson-001"}},
])
def test_non_list_definitions_rejected(content):
    """Test lessons and modules must be lists"""
    with pytest.raises(ContentValidationError, match="definitions must be a list"):
        ContentGraph.from_content(content)


def test_next_lessons_and_last_lesson_flag():
    """Test next lessons keep known ids and drive is_last_lesson"""
    graph = ContentGraph.build([
        make_lesson("lesson-001", nextLessons=["lesson-002", "lesson-404"]),
        make_lesson("lesson-002", ["lesson-001"]),
    ], [])

    assert graph.get_lesson("lesson-001").next_lessons == ("lesson-002",)
    assert graph.get_lesson("lesson-001").is_last_lesson is False
    assert graph.get_lesson("lesson-002").is_last_lesson is True


def test_unbuilt_graph_len_and_membership_raise():
    graph = ContentGraph()

    with pytest.raises(GraphNotInitializedError):
        len(graph)
    with pytest.raises(GraphNotInitializedError):
        "lesson-001" in graph
