"""
Answer Matching

Exact-strategy comparisons for each exercise type. The expected answer is
checked first, then each accepted solution in order; the first accepted
solution that matches is reported as matched_alternative.

- write: normalize_python() on both sides
- fill-in: trimmed comparison
- predict: normalize_output() on both sides (case-sensitive)

Empty or whitespace-only answers go through the same path and simply fail
to match.
"""

from typing import Callable, Sequence

from practice_engine.enums.learning import ExerciseType
from practice_engine.models.exercise import Exercise
from practice_engine.models.grading import MatchResult
from practice_engine.services.grading.normalize import (
    normalize_fill_in,
    normalize_output,
    normalize_python,
)

Normalizer = Callable[[str], str]


def _match_with(
    normalize: Normalizer,
    user_answer: str,
    expected_answer: str,
    accepted_solutions: Sequence[str],
) -> MatchResult:
    normalized_user = normalize(user_answer)
    normalized_expected = normalize(expected_answer)

    if normalized_user and normalized_user == normalized_expected:
        return MatchResult(True, normalized_user, normalized_expected)

    if normalized_user:
        for alternative in accepted_solutions:
            if normalize(alternative) == normalized_user:
                return MatchResult(
                    True, normalized_user, normalized_expected, matched_alternative=alternative
                )

    return MatchResult(False, normalized_user, normalized_expected)


def check_answer_with_alternatives(
    user_answer: str,
    expected_answer: str,
    accepted_solutions: Sequence[str] = (),
) -> MatchResult:
    """Match a write answer using Python-aware normalization."""
    return _match_with(normalize_python, user_answer, expected_answer, accepted_solutions)


def check_fill_in_answer(
    user_answer: str,
    expected_answer: str,
    accepted_solutions: Sequence[str] = (),
) -> MatchResult:
    """Match a fill-in-the-blank answer after trimming."""
    return _match_with(normalize_fill_in, user_answer, expected_answer, accepted_solutions)


def check_predict_answer(
    user_answer: str,
    expected_answer: str,
    accepted_solutions: Sequence[str] = (),
) -> MatchResult:
    """Match a predicted output after trimming trailing whitespace/newlines."""
    return _match_with(normalize_output, user_answer, expected_answer, accepted_solutions)


def check_exact(user_answer: str, exercise: Exercise) -> MatchResult:
    """
    Run the exact comparison appropriate for the exercise type.

    Args:
        user_answer: Raw answer text
        exercise: Exercise being graded

    Returns:
        MatchResult with normalized answers and any matched alternative
    """
    if exercise.exercise_type == ExerciseType.FILL_IN:
        checker = check_fill_in_answer
    elif exercise.exercise_type == ExerciseType.PREDICT:
        checker = check_predict_answer
    else:
        checker = check_answer_with_alternatives

    return checker(user_answer, exercise.expected_answer, exercise.accepted_solutions)
