"""
Rating Inference

Turns grading output and response metadata into a scheduler rating.

Two scales coexist and are never merged:
- Rating: 4-valued ordinal (Again/Hard/Good/Easy) consumed by the FSRS
  model and the ReviewEngine
- Quality: legacy 0-5 SM-2 score still produced by older call sites

Rating logic (infer_rating):
- Incorrect -> Again
- Correct with hint -> Hard
- Correct with AST match -> Good (format differs but logic correct)
- Correct fast (<15s) -> Easy
- Correct medium (15-30s) -> Good
- Correct slow (>=30s) -> Hard

review_input_from_grading() carries GradingResult.used_ast_match over, so
an answer typed literally is rated on timing while a structural-only match
is capped at Good.
"""

from typing import Optional

from practice_engine.config.settings import settings
from practice_engine.enums.learning import Rating
from practice_engine.models.grading import GradingResult
from practice_engine.models.learning import QualityInput, ReviewInput

_RATING_TO_QUALITY = {
    Rating.AGAIN: 2,
    Rating.HARD: 3,
    Rating.GOOD: 4,
    Rating.EASY: 5,
}


def infer_rating(
    review_input: ReviewInput,
    fast_threshold_ms: Optional[int] = None,
    slow_threshold_ms: Optional[int] = None,
) -> Rating:
    """
    Infer a rating directly from review signals.

    Args:
        review_input: Correctness, hint, timing and AST-match signals
        fast_threshold_ms: Below this a correct answer is Easy
            (defaults to settings.RATING_FAST_THRESHOLD_MS)
        slow_threshold_ms: At or above this a correct answer is Hard
            (defaults to settings.RATING_SLOW_THRESHOLD_MS)

    Returns:
        Inferred rating
    """
    fast = fast_threshold_ms if fast_threshold_ms is not None else settings.RATING_FAST_THRESHOLD_MS
    slow = slow_threshold_ms if slow_threshold_ms is not None else settings.RATING_SLOW_THRESHOLD_MS

    if not review_input.is_correct:
        return Rating.AGAIN

    if review_input.hint_used:
        return Rating.HARD

    if review_input.used_ast_match:
        return Rating.GOOD

    if review_input.response_time_ms < fast:
        return Rating.EASY
    if review_input.response_time_ms < slow:
        return Rating.GOOD
    return Rating.HARD


def quality_to_rating(quality: int) -> Rating:
    """
    Convert a legacy SM-2 quality score (0-5) to a rating.

    Mapping:
    - 0-2 (fail) -> Again
    - 3 (struggle) -> Hard
    - 4 (hesitation) -> Good
    - 5 (perfect) -> Easy
    """
    if quality <= 2:
        return Rating.AGAIN
    if quality == 3:
        return Rating.HARD
    if quality == 4:
        return Rating.GOOD
    return Rating.EASY


def rating_to_quality(rating: Rating) -> int:
    """
    Convert a rating to the legacy quality scale.

    Only the SM-2 model needs this. Again maps to 2, the highest failing
    quality, so the ease factor is left alone on failure.
    """
    return _RATING_TO_QUALITY[Rating(rating)]


def is_passing_rating(rating: Rating) -> bool:
    """Again is the only failing rating."""
    return rating != Rating.AGAIN


def infer_quality(quality_input: QualityInput) -> int:
    """
    Infer the legacy SM-2 quality score (2-5) from answer signals.

    Quality mapping:
    - 5: Perfect recall (correct, no hint, fast, and enough prior reps)
    - 4: Hesitation (medium time), AST match, or fast on an early review
    - 3: Struggle (hint used, or slow)
    - 2: Failed

    Quality 5 is capped at 4 while current_reps is below
    settings.QUALITY_MIN_REPS_FOR_EASY, so a single fast answer can't
    grant a long first interval.
    """
    if not quality_input.is_correct:
        return 2

    if quality_input.hint_used:
        return 3

    if quality_input.used_ast_match:
        return 4

    if quality_input.response_time_ms < settings.QUALITY_FAST_THRESHOLD_MS:
        if (
            quality_input.current_reps is not None
            and quality_input.current_reps < settings.QUALITY_MIN_REPS_FOR_EASY
        ):
            return 4
        return 5

    if quality_input.response_time_ms < settings.QUALITY_SLOW_THRESHOLD_MS:
        return 4

    return 3


def review_input_from_grading(
    result: GradingResult,
    hint_used: bool = False,
    response_time_ms: int = 0,
) -> ReviewInput:
    """Build the rating signals for a graded answer."""
    return ReviewInput(
        is_correct=result.is_correct,
        hint_used=hint_used,
        response_time_ms=response_time_ms,
        used_ast_match=result.used_ast_match,
    )
