from pydantic import BaseModel, ConfigDict, Field
from typing import List, Dict, Any, Optional, Set, Union
from datetime import date, datetime
from enum import Enum


class LessonLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class DifficultyLevel(str, Enum):
    """Ordered five-level difficulty scale (declaration order is the scale order)"""
    VERY_EASY = "very_easy"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    VERY_HARD = "very_hard"


DIFFICULTY_SCALE: List[DifficultyLevel] = list(DifficultyLevel)


class ExerciseType(str, Enum):
    FILL_IN_THE_BLANK = "fill-in-the-blank"
    DRAG_DROP = "drag-drop"
    LISTENING = "listening"
    TYPING = "typing"
    QUIZ = "quiz"
    FLASHCARD = "flashcard"


class MilestoneCategory(str, Enum):
    STREAK = "streak"
    EXERCISES = "exercises"
    LESSONS = "lessons"
    POINTS = "points"


# Content definitions

class LessonContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    examples: List[Dict[str, Any]] = Field(default_factory=list)


class ExerciseDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ExerciseType
    id: Optional[str] = None


class LessonDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    level: LessonLevel
    category: str = Field(..., min_length=1)
    description: str = ""
    prerequisites: List[str] = Field(default_factory=list)
    next_lessons: List[str] = Field(default_factory=list, alias="nextLessons")
    estimated_time: int = Field(0, ge=0, alias="estimatedTime", description="Minutes")
    order: Optional[float] = None
    content: LessonContent = Field(default_factory=LessonContent)
    exercises: List[ExerciseDefinition] = Field(default_factory=list)


class ModuleDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str = ""
    level: LessonLevel = LessonLevel.BEGINNER
    description: str = ""
    lessons: List[str] = Field(default_factory=list, description="Lesson ids in declared order")


class ContentDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    lessons: List[LessonDefinition] = Field(default_factory=list)
    modules: List[ModuleDefinition] = Field(default_factory=list)


# Ledger records (append-only)

class CompletionRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    lesson_id: str = Field(..., alias="lessonId")
    timestamp: datetime
    score: float = Field(0, ge=0, le=100)
    time_spent: int = Field(0, ge=0, alias="timeSpent", description="Milliseconds")
    attempts: int = Field(1, ge=1)


class PerformanceEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    exercise_type: ExerciseType = Field(..., alias="exerciseType")
    score: float = Field(..., ge=0, le=100)
    time_spent: float = Field(0, ge=0, alias="timeSpent", description="Seconds")
    difficulty: DifficultyLevel = DifficultyLevel.MEDIUM
    hints_used: int = Field(0, ge=0, alias="hintsUsed")
    attempts: int = Field(1, ge=1)
    timestamp: datetime


class LearnerLedger(BaseModel):
    """Snapshot of one learner's event history"""
    model_config = ConfigDict(frozen=True)

    completions: List[CompletionRecord] = Field(default_factory=list)
    performance: List[PerformanceEntry] = Field(default_factory=list)
    activity: List[Union[datetime, date]] = Field(default_factory=list)

    def completed_lesson_ids(self) -> Set[str]:
        return {record.lesson_id for record in self.completions}

    def activity_timestamps(self) -> List[Union[datetime, date]]:
        """All timestamps that count as learner activity"""
        timestamps: List[Union[datetime, date]] = list(self.activity)
        timestamps.extend(record.timestamp for record in self.completions)
        timestamps.extend(entry.timestamp for entry in self.performance)
        return timestamps


# Derived views

class ModuleProgress(BaseModel):
    module_id: str
    total_lessons: int
    completed_lessons: int
    progress_percentage: int = Field(..., ge=0, le=100)


class LearningStatistics(BaseModel):
    total_lessons: int
    completed_lessons: int
    total_modules: int
    completed_modules: int
    total_estimated_time: int
    progress_percentage: int
    available_lessons: int


class StreakState(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    last_activity_date: Optional[date] = None
    is_active: bool = False
    days_until_break: Optional[int] = None  # days since last activity while the streak is active


class AreaPerformance(BaseModel):
    exercise_type: ExerciseType
    average_score: float


class PerformanceAnalysis(BaseModel):
    average_score: float = 0.0
    average_time: float = 0.0
    consistency: float = 0.0
    improvement: float = 0.0
    weak_areas: List[AreaPerformance] = Field(default_factory=list)
    strong_areas: List[AreaPerformance] = Field(default_factory=list)
    total_attempts: int = 0


class AdjustmentSignal(BaseModel):
    name: str
    contribution: int
    detail: str


class DifficultyRecommendation(BaseModel):
    exercise_type: ExerciseType
    current_difficulty: DifficultyLevel
    recommended_difficulty: DifficultyLevel
    rationale: str
    should_adjust: bool = False
    adjustment_score: int = 0
    signals: List[AdjustmentSignal] = Field(default_factory=list)
    analysis: Optional[PerformanceAnalysis] = None


class MilestoneDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    threshold: int
    points: int


class MilestoneEvent(BaseModel):
    category: MilestoneCategory
    threshold: int
    milestone: MilestoneDefinition


class MilestoneCounters(BaseModel):
    streak: int = Field(0, ge=0)
    exercises: int = Field(0, ge=0)
    lessons: int = Field(0, ge=0)
    points: int = Field(0, ge=0)

    def value_for(self, category: MilestoneCategory) -> int:
        return getattr(self, category.value)


class NextMilestone(BaseModel):
    category: MilestoneCategory
    milestone: MilestoneDefinition
    remaining: int


class LearnerLevel(BaseModel):
    level: int
    name: str
    min_points: int
    progress: float = Field(..., ge=0, le=100)
    points_to_next: int
    next_level_name: Optional[str] = None


class LearnerProgressReport(BaseModel):
    statistics: LearningStatistics
    streak: StreakState
    counters: MilestoneCounters
    learner_level: LearnerLevel
    next_lesson_id: Optional[str] = None
    module_progress: List[ModuleProgress] = Field(default_factory=list)
