"""
Exercise Attempt Bookkeeping

Counters and audit records for exercise presentations. Every graded
answer bumps the (user, exercise) counters regardless of scheduler phase;
the selector reads times_seen to drive level progression and least-seen
rotation.

Usage:
    from practice_engine.services.learning.attempts import record_attempt

    attempt = record_attempt(existing_or_none, "slice-basics", was_correct=True)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Optional

from practice_engine.enums.grading import GradingStrategy
from practice_engine.models.grading import GradingResult
from practice_engine.models.learning import ExerciseAttempt


def record_attempt(
    attempt: Optional[ExerciseAttempt],
    exercise_slug: str,
    was_correct: bool,
    now: Optional[datetime] = None,
    user_id: Optional[str] = None,
) -> ExerciseAttempt:
    """
    Upsert the attempt counters for one exercise.

    Args:
        attempt: Existing counters, or None on first presentation
        exercise_slug: Exercise that was answered
        was_correct: Grading outcome
        now: Presentation time (default: current UTC time)
        user_id: Learner, used when creating a new row

    Returns:
        New ExerciseAttempt with times_seen + 1 and times_correct updated
    """
    now = now or datetime.now(timezone.utc)
    if attempt is None:
        attempt = ExerciseAttempt(exercise_slug=exercise_slug, user_id=user_id)

    return replace(
        attempt,
        times_seen=attempt.times_seen + 1,
        times_correct=attempt.times_correct + (1 if was_correct else 0),
        last_seen_at=now,
    )


@dataclass
class AttemptLogData:
    """Inputs for an exercise_attempts audit record."""

    user_id: str
    exercise_slug: str
    grading_result: GradingResult
    response_time_ms: int
    hint_used: bool
    rating: int
    language: str = "python"


def build_attempt_record(
    data: AttemptLogData, now: Optional[datetime] = None
) -> dict[str, Any]:
    """
    Build the audit row written alongside a graded attempt.

    times_seen/times_correct describe this single attempt; the store adds
    them onto any existing row.
    """
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    result = data.grading_result

    return {
        "user_id": data.user_id,
        "exercise_slug": data.exercise_slug,
        "language": data.language,
        "times_seen": 1,
        "times_correct": 1 if result.is_correct else 0,
        "last_seen_at": timestamp,
        "grading_method": GradingStrategy(result.grading_method).value,
        "used_target_construct": result.used_target_construct,
        "coaching_shown": result.coaching_feedback is not None,
        "fallback_used": result.fallback_used,
        "response_time_ms": data.response_time_ms,
        "hint_used": data.hint_used,
        "rating": int(data.rating),
        "attempted_at": timestamp,
        "is_correct": result.is_correct,
    }
