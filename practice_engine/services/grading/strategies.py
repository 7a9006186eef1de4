"""
Grading Strategy Resolution

Decides which strategy grades an exercise and which one takes over when the
primary cannot run.

Resolution order:
1. An explicit grading_strategy on the exercise
2. A verification_script, or the legacy verify_by_execution flag -> execution
3. Default per exercise type:
   - fill-in -> exact
   - write -> ast, falling back to exact
   - predict -> execution, falling back to exact

Exact matching never needs infrastructure, so it is the fallback for every
other strategy and has no fallback itself.
"""

from practice_engine.enums.grading import GradingStrategy
from practice_engine.enums.learning import ExerciseType
from practice_engine.models.exercise import Exercise
from practice_engine.models.grading import StrategyConfig

DEFAULT_STRATEGIES: dict[ExerciseType, GradingStrategy] = {
    ExerciseType.FILL_IN: GradingStrategy.EXACT,
    ExerciseType.WRITE: GradingStrategy.AST,
    ExerciseType.PREDICT: GradingStrategy.EXECUTION,
}


def _with_fallback(primary: GradingStrategy) -> StrategyConfig:
    fallback = None if primary == GradingStrategy.EXACT else GradingStrategy.EXACT
    return StrategyConfig(primary=primary, fallback=fallback)


def resolve_strategy(exercise: Exercise) -> StrategyConfig:
    """
    Resolve the primary and fallback grading strategy for an exercise.

    Args:
        exercise: Exercise being graded

    Returns:
        StrategyConfig(primary, fallback)
    """
    if exercise.grading_strategy is not None:
        return _with_fallback(GradingStrategy(exercise.grading_strategy))

    if exercise.verification_script or exercise.verify_by_execution:
        return _with_fallback(GradingStrategy.EXECUTION)

    return _with_fallback(
        DEFAULT_STRATEGIES.get(ExerciseType(exercise.exercise_type), GradingStrategy.EXACT)
    )
