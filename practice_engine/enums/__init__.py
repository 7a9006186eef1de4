"""
Centralized enum definitions for the engine.

All enums are organized by domain:
- learning.py: scheduler states, ratings, phases, exercise levels and types
- grading.py: grading strategies, fallback reasons, target constructs

Usage:
    from practice_engine.enums import Rating, State, GradingStrategy
"""

from practice_engine.enums.learning import (
    State,
    Rating,
    SchedulerAlgorithm,
    Phase,
    ExerciseLevel,
    ExerciseType,
)
from practice_engine.enums.grading import (
    GradingStrategy,
    FallbackReason,
    ConstructType,
)

__all__ = [
    # Learning
    "State",
    "Rating",
    "SchedulerAlgorithm",
    "Phase",
    "ExerciseLevel",
    "ExerciseType",
    # Grading
    "GradingStrategy",
    "FallbackReason",
    "ConstructType",
]
