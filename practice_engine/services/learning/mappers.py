"""
Persistence Mappers

Convert progress and attempt dataclasses to and from the row dicts the
external store reads and writes (subconcept_progress, exercise_attempts).

Column mapping for subconcept_progress:
    stability       -> stability
    difficulty      -> difficulty
    state           -> state (int: 0 New, 1 Learning, 2 Review, 3 Relearning)
    reps            -> reps
    lapses          -> lapses
    elapsed_days    -> elapsed_days
    scheduled_days  -> scheduled_days
    due             -> next_review
    last_review     -> last_reviewed
    step            -> learning_step
    ease_factor     -> ease_factor
    streak          -> streak

Timestamps are written as ISO-8601 strings and accepted back as either
strings or datetimes.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union

from practice_engine.enums.learning import State
from practice_engine.models.learning import ExerciseAttempt, SubconceptProgress

logger = logging.getLogger(__name__)

TimestampValue = Union[str, datetime, None]


def _parse_timestamp(value: TimestampValue) -> Optional[datetime]:
    """Parse an ISO string or datetime into an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_state(value: Any) -> State:
    """Decode the persisted state; unknown values fall back to New."""
    try:
        return State(int(value))
    except (TypeError, ValueError):
        logger.warning(f"Unknown progress state {value!r}; treating as New")
        return State.NEW


def progress_to_row(progress: SubconceptProgress) -> dict[str, Any]:
    """Map a SubconceptProgress to a subconcept_progress row."""
    return {
        "user_id": progress.user_id,
        "language": progress.language,
        "subconcept_slug": progress.subconcept_slug,
        "concept_slug": progress.concept_slug,
        "stability": progress.stability,
        "difficulty": progress.difficulty,
        "state": int(progress.state),
        "reps": progress.reps,
        "lapses": progress.lapses,
        "elapsed_days": progress.elapsed_days,
        "scheduled_days": progress.scheduled_days,
        "next_review": _format_timestamp(progress.due),
        "last_reviewed": _format_timestamp(progress.last_review),
        "learning_step": progress.step,
        "ease_factor": progress.ease_factor,
        "streak": progress.streak,
    }


def row_to_progress(row: dict[str, Any]) -> SubconceptProgress:
    """
    Map a subconcept_progress row to a SubconceptProgress.

    Missing scheduling columns take their CardState defaults, so rows
    written before a column existed still load.
    """
    defaults = SubconceptProgress()
    due = _parse_timestamp(row.get("next_review"))

    return SubconceptProgress(
        subconcept_slug=row["subconcept_slug"],
        concept_slug=row.get("concept_slug") or "",
        user_id=row.get("user_id"),
        language=row.get("language") or defaults.language,
        stability=float(row.get("stability") or 0.0),
        difficulty=float(row.get("difficulty") or 0.0),
        state=_parse_state(row.get("state", State.NEW)),
        reps=int(row.get("reps") or 0),
        lapses=int(row.get("lapses") or 0),
        elapsed_days=float(row.get("elapsed_days") or 0.0),
        scheduled_days=int(row.get("scheduled_days") or 0),
        due=due if due is not None else defaults.due,
        last_review=_parse_timestamp(row.get("last_reviewed")),
        step=row.get("learning_step", defaults.step),
        ease_factor=float(row.get("ease_factor") or defaults.ease_factor),
        streak=int(row.get("streak") or 0),
    )


def attempt_to_row(attempt: ExerciseAttempt) -> dict[str, Any]:
    """Map an ExerciseAttempt to an exercise_attempts row."""
    return {
        "user_id": attempt.user_id,
        "exercise_slug": attempt.exercise_slug,
        "times_seen": attempt.times_seen,
        "times_correct": attempt.times_correct,
        "last_seen_at": _format_timestamp(attempt.last_seen_at),
    }


def row_to_attempt(row: dict[str, Any]) -> ExerciseAttempt:
    """Map an exercise_attempts row to an ExerciseAttempt."""
    return ExerciseAttempt(
        exercise_slug=row["exercise_slug"],
        times_seen=int(row.get("times_seen") or 0),
        times_correct=int(row.get("times_correct") or 0),
        last_seen_at=_parse_timestamp(row.get("last_seen_at")),
        user_id=row.get("user_id"),
    )
