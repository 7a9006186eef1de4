"""
Engine data models.

- learning.py: scheduling state, progress rows, attempts (dataclasses)
- exercise.py: validated exercise content (Pydantic)
- grading.py: grading results (dataclasses)
"""

from practice_engine.models.learning import (
    CardState,
    ExerciseAttempt,
    QualityInput,
    ReviewInput,
    ReviewLog,
    ReviewResult,
    SubconceptProgress,
    SubconceptSelectionInfo,
)
from practice_engine.models.exercise import Exercise, TargetConstruct, load_exercise
from practice_engine.models.grading import (
    ConstructCheckResult,
    ExecutionOutcome,
    GradingResult,
    MatchResult,
    StrategyConfig,
    StrategyResult,
)

__all__ = [
    # Learning
    "CardState",
    "ExerciseAttempt",
    "QualityInput",
    "ReviewInput",
    "ReviewLog",
    "ReviewResult",
    "SubconceptProgress",
    "SubconceptSelectionInfo",
    # Exercise content
    "Exercise",
    "TargetConstruct",
    "load_exercise",
    # Grading
    "ConstructCheckResult",
    "ExecutionOutcome",
    "GradingResult",
    "MatchResult",
    "StrategyConfig",
    "StrategyResult",
]
