"""
Grading Pipeline

Two-pass grading of a learner's answer.

Pass 1 (correctness): run the exercise's primary strategy (see
services.grading.strategies). If the primary strategy could not run at
all, run the fallback strategy instead. A wrong answer never triggers the
fallback.

Pass 2 (coaching): only for correct answers to exercises with a target
construct. If the answer does not use the construct, attach coaching
feedback. The check runs on the learner's own answer, whichever accepted
solution it matched.

Usage:
    from practice_engine.services.grading.pipeline import grade_with_strategy

    result = await grade_with_strategy(answer, exercise, oracle)
    if should_show_coaching(result):
        show(result.coaching_feedback)

    # Synchronous, exact matching only
    result = grade_answer(answer, exercise)
"""

import logging
from typing import Optional

from practice_engine.config.settings import settings, yaml_config
from practice_engine.enums.grading import FallbackReason, GradingStrategy
from practice_engine.enums.learning import ExerciseType
from practice_engine.models.exercise import Exercise
from practice_engine.models.grading import GradingResult, StrategyResult
from practice_engine.services.grading.ast_compare import compare_by_ast
from practice_engine.services.grading.constructs import check_construct
from practice_engine.services.grading.execution import (
    ExecutionOracle,
    is_oracle_available,
    verify_predict_answer,
    verify_with_script,
    verify_write_answer,
)
from practice_engine.services.grading.matching import check_exact, check_predict_answer
from practice_engine.services.grading.normalize import (
    normalize_fill_in,
    normalize_output,
    normalize_python,
)
from practice_engine.services.grading.strategies import resolve_strategy
from practice_engine.services.grading.telemetry import (
    create_telemetry_entry,
    log_grading_telemetry,
)
from practice_engine.services.grading.token_compare import compare_by_tokens

logger = logging.getLogger(__name__)

DEFAULT_COACHING_FEEDBACK: str = yaml_config.get("grading", {}).get(
    "default_coaching_feedback",
    "Great job! Consider trying the suggested approach next time.",
)


def should_show_coaching(result: GradingResult) -> bool:
    """Coaching is shown only for correct answers that skipped the target construct."""
    return result.is_correct and result.used_target_construct is False


def _coaching_pass(
    user_answer: str, exercise: Exercise, is_correct: bool
) -> tuple[Optional[bool], Optional[str]]:
    """Return (used_target_construct, coaching_feedback)."""
    target = exercise.target_construct
    if not is_correct or target is None:
        return None, None

    if check_construct(user_answer, target.type).detected:
        return True, None

    feedback = target.feedback if target.feedback is not None else DEFAULT_COACHING_FEEDBACK
    return False, feedback


def _normalized_pair(user_answer: str, exercise: Exercise) -> tuple[str, str]:
    """Answers as displayed in the result, normalized per exercise type."""
    if exercise.exercise_type == ExerciseType.FILL_IN:
        normalize = normalize_fill_in
    elif exercise.exercise_type == ExerciseType.PREDICT:
        normalize = normalize_output
    else:
        normalize = normalize_python
    return normalize(user_answer), normalize(exercise.expected_answer)


def grade_answer(user_answer: str, exercise: Exercise) -> GradingResult:
    """
    Grade an answer with exact matching only.

    Args:
        user_answer: Learner's raw answer
        exercise: Exercise being graded

    Returns:
        GradingResult with grading_method=exact
    """
    match = check_exact(user_answer, exercise)
    used_target_construct, coaching_feedback = _coaching_pass(
        user_answer, exercise, match.is_correct
    )

    return GradingResult(
        is_correct=match.is_correct,
        grading_method=GradingStrategy.EXACT,
        used_target_construct=used_target_construct,
        coaching_feedback=coaching_feedback,
        normalized_user_answer=match.normalized_user_answer,
        normalized_expected_answer=match.normalized_expected_answer,
        matched_alternative=match.matched_alternative,
    )


def _run_exact(user_answer: str, exercise: Exercise) -> StrategyResult:
    match = check_exact(user_answer, exercise)
    return StrategyResult(
        is_correct=match.is_correct,
        infra_available=True,
        matched_alternative=match.matched_alternative,
    )


def _run_ast(user_answer: str, exercise: Exercise) -> StrategyResult:
    # A literal match is not an AST match for rating purposes
    literal = check_exact(user_answer, exercise)
    if literal.is_correct:
        return StrategyResult(
            is_correct=True,
            infra_available=True,
            matched_alternative=literal.matched_alternative,
        )

    result = compare_by_ast(user_answer, exercise.expected_answer, exercise.accepted_solutions)
    return StrategyResult(
        is_correct=result.match,
        infra_available=result.infra_available,
        matched_alternative=result.matched_alternative,
        used_ast_match=result.match,
        error=result.error,
        fallback_reason=None if result.infra_available else FallbackReason.EXECUTION_ERROR,
    )


def _run_token(user_answer: str, exercise: Exercise) -> StrategyResult:
    result = compare_by_tokens(user_answer, exercise.expected_answer, exercise.accepted_solutions)
    return StrategyResult(
        is_correct=result.match,
        infra_available=True,
        matched_alternative=result.matched_alternative,
    )


async def _run_execution(
    user_answer: str,
    exercise: Exercise,
    oracle: Optional[ExecutionOracle],
    timeout: Optional[float],
) -> StrategyResult:
    if not is_oracle_available(oracle):
        return StrategyResult(
            is_correct=False,
            infra_available=False,
            error="No execution oracle available",
            fallback_reason=FallbackReason.INFRA_UNAVAILABLE,
        )

    if exercise.verification_script:
        verification = await verify_with_script(
            oracle, user_answer, exercise.verification_script, timeout
        )
    elif exercise.exercise_type == ExerciseType.PREDICT and exercise.code:
        verification = await verify_predict_answer(oracle, exercise.code, user_answer, timeout)
        if (
            verification.infra_available
            and not verification.passed
            and exercise.accepted_solutions
        ):
            # Output order can legitimately differ (sets, dicts)
            match = check_predict_answer(
                user_answer, exercise.expected_answer, exercise.accepted_solutions
            )
            if match.is_correct:
                return StrategyResult(
                    is_correct=True,
                    infra_available=True,
                    matched_alternative=match.matched_alternative,
                )
    elif exercise.exercise_type == ExerciseType.WRITE:
        verification = await verify_write_answer(
            oracle,
            user_answer,
            exercise.expected_answer,
            exercise.verification_template,
            timeout,
        )
    else:
        return StrategyResult(
            is_correct=False,
            infra_available=False,
            error=f"Nothing to execute for {exercise.exercise_type.value} exercise {exercise.slug}",
            fallback_reason=FallbackReason.INFRA_UNAVAILABLE,
        )

    if not verification.infra_available:
        return StrategyResult(
            is_correct=False,
            infra_available=False,
            error=verification.error,
            fallback_reason=FallbackReason.EXECUTION_ERROR,
        )

    return StrategyResult(
        is_correct=verification.passed,
        infra_available=True,
        error=verification.error,
    )


async def run_strategy(
    strategy: GradingStrategy,
    user_answer: str,
    exercise: Exercise,
    oracle: Optional[ExecutionOracle] = None,
    timeout: Optional[float] = None,
) -> StrategyResult:
    """
    Run a single grading strategy.

    Never raises: an unexpected failure inside a strategy is reported as
    infra_available=False so the caller can fall back.
    """
    strategy = GradingStrategy(strategy)

    if strategy == GradingStrategy.EXACT:
        return _run_exact(user_answer, exercise)

    try:
        if strategy == GradingStrategy.AST:
            return _run_ast(user_answer, exercise)
        if strategy == GradingStrategy.TOKEN:
            return _run_token(user_answer, exercise)
        return await _run_execution(user_answer, exercise, oracle, timeout)
    except Exception as e:
        logger.error(f"Strategy {strategy.value} failed on {exercise.slug}: {e}")
        return StrategyResult(
            is_correct=False,
            infra_available=False,
            error=str(e),
            fallback_reason=FallbackReason.EXECUTION_ERROR,
        )


async def grade_with_strategy(
    user_answer: str,
    exercise: Exercise,
    oracle: Optional[ExecutionOracle] = None,
    timeout: Optional[float] = None,
) -> GradingResult:
    """
    Grade an answer with the exercise's strategy and fallback rules.

    Args:
        user_answer: Learner's raw answer
        exercise: Exercise being graded
        oracle: Optional execution oracle; None makes execution grading
            unavailable
        timeout: Oracle timeout in seconds
            (default: settings.GRADING_EXECUTION_TIMEOUT_SECONDS)

    Returns:
        GradingResult. grading_method is the strategy that decided the
        verdict; fallback_used/fallback_reason record any fallback.
    """
    config = resolve_strategy(exercise)

    result = await run_strategy(config.primary, user_answer, exercise, oracle, timeout)
    grading_method = config.primary
    infra_available = result.infra_available
    fallback_used = False
    fallback_reason: Optional[FallbackReason] = None

    if not result.infra_available and config.fallback is not None:
        fallback_reason = result.fallback_reason or FallbackReason.INFRA_UNAVAILABLE
        logger.warning(
            f"Strategy '{config.primary.value}' unavailable for {exercise.slug} "
            f"({fallback_reason.value}: {result.error}), falling back to '{config.fallback.value}'"
        )
        result = await run_strategy(config.fallback, user_answer, exercise, oracle, timeout)
        grading_method = config.fallback
        fallback_used = True

    used_target_construct, coaching_feedback = _coaching_pass(
        user_answer, exercise, result.is_correct
    )
    normalized_user, normalized_expected = _normalized_pair(user_answer, exercise)

    grading_result = GradingResult(
        is_correct=result.is_correct,
        grading_method=grading_method,
        used_target_construct=used_target_construct,
        coaching_feedback=coaching_feedback,
        normalized_user_answer=normalized_user,
        normalized_expected_answer=normalized_expected,
        matched_alternative=result.matched_alternative,
        used_ast_match=result.used_ast_match,
        infra_available=infra_available,
        fallback_used=fallback_used,
        fallback_reason=fallback_reason,
    )

    logger.debug(
        f"Graded {exercise.slug} via {grading_method.value}: correct={grading_result.is_correct}, "
        f"construct={used_target_construct}, fallback={fallback_used}"
    )

    if settings.GRADING_TELEMETRY_ENABLED:
        log_grading_telemetry(
            create_telemetry_entry(
                exercise_slug=exercise.slug,
                strategy=grading_method,
                was_correct=grading_result.is_correct,
                fallback_used=fallback_used,
                user_answer=user_answer,
                fallback_reason=fallback_reason,
                matched_alternative=grading_result.matched_alternative,
            )
        )

    return grading_result
