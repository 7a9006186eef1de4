"""
Due Set Management

Tracks which subconcepts are due in the current session and feeds them, most
overdue first, to the exercise selector.

Lifecycle:
    1. refresh() loads every progress row and keeps those with due <= now
    2. current_subconcept is the head of the list
    3. record_review() schedules the subconcept and drops it from the list
       right away, without waiting for the caller to persist and reload

Usage:
    from practice_engine.services.learning.due_set import DueSetManager

    manager = DueSetManager(create_review_engine())
    manager.refresh(progress_rows, now)
    while manager.current_subconcept:
        progress = manager.current_subconcept
        exercise = manager.next_exercise(progress, exercises)
        ...
        updated = manager.record_review(progress, rating, now)
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from practice_engine.enums.learning import Rating, State
from practice_engine.models.exercise import Exercise
from practice_engine.models.learning import (
    ExerciseAttempt,
    SubconceptProgress,
    SubconceptSelectionInfo,
)
from practice_engine.services.learning.attempts import record_attempt
from practice_engine.services.learning.exercise_selector import (
    RandomSource,
    map_state_to_phase,
    select_exercise,
)
from practice_engine.services.learning.review_engine import ReviewEngine, ensure_utc

logger = logging.getLogger(__name__)


def get_due_subconcepts(
    all_progress: Iterable[SubconceptProgress],
    now: Optional[datetime] = None,
) -> list[SubconceptProgress]:
    """
    Get subconcepts due for review, most overdue first.

    Args:
        all_progress: Every progress row for the learner
        now: Reference time (default: current UTC time)

    Returns:
        Progress rows with due <= now, sorted by due ascending
    """
    now = ensure_utc(now or datetime.now(timezone.utc))
    due = [p for p in all_progress if ensure_utc(p.due) <= now]
    return sorted(due, key=lambda p: ensure_utc(p.due))


FORECAST_BUCKETS = ("overdue", "today", "tomorrow", "this_week", "later")


def get_review_forecast(
    all_progress: Iterable[SubconceptProgress],
    as_of: Optional[datetime] = None,
) -> dict[str, int]:
    """
    Count upcoming subconcept reviews per UTC calendar bucket.

    Subconcepts never reviewed (State.NEW) are left out; they are practiced
    when introduced, not when due. Naive datetimes are taken to be UTC.

    Args:
        all_progress: Progress rows (or bare card states)
        as_of: Reference time (default: current UTC time)

    Returns:
        Dict with counts for overdue, today, tomorrow, this_week and later
    """
    as_of = ensure_utc(as_of or datetime.now(timezone.utc))
    today_start = as_of.replace(hour=0, minute=0, second=0, microsecond=0)
    boundaries = (
        today_start,
        today_start + timedelta(days=1),
        today_start + timedelta(days=2),
        today_start + timedelta(days=7),
    )

    forecast = dict.fromkeys(FORECAST_BUCKETS, 0)
    for progress in all_progress:
        if progress.state == State.NEW:
            continue
        due = ensure_utc(progress.due)
        bucket = next(
            (name for name, end in zip(FORECAST_BUCKETS, boundaries) if due < end),
            "later",
        )
        forecast[bucket] += 1

    return forecast


class DueSetManager:
    """
    In-memory due list for one practice session.

    Holds the ReviewEngine used to schedule reviews and a cache of exercise
    attempt counters, keyed by exercise slug.
    """

    def __init__(
        self,
        engine: ReviewEngine,
        attempts: Optional[Iterable[ExerciseAttempt]] = None,
        rng: RandomSource = random.random,
    ):
        self.engine = engine
        self.rng = rng
        self._due: list[SubconceptProgress] = []
        self._attempts: dict[str, ExerciseAttempt] = {
            a.exercise_slug: a for a in (attempts or [])
        }

    @property
    def due_subconcepts(self) -> list[SubconceptProgress]:
        return list(self._due)

    @property
    def current_subconcept(self) -> Optional[SubconceptProgress]:
        """Most overdue subconcept, or None when nothing is due."""
        return self._due[0] if self._due else None

    @property
    def remaining_count(self) -> int:
        return len(self._due)

    @property
    def attempts(self) -> list[ExerciseAttempt]:
        return list(self._attempts.values())

    def refresh(
        self,
        all_progress: Iterable[SubconceptProgress],
        now: Optional[datetime] = None,
    ) -> list[SubconceptProgress]:
        """Recompute the due list from freshly loaded progress rows."""
        self._due = get_due_subconcepts(all_progress, now)
        logger.debug(f"Due set refreshed: {len(self._due)} subconcepts due")
        return self.due_subconcepts

    def record_review(
        self,
        progress: SubconceptProgress,
        rating: Rating,
        now: Optional[datetime] = None,
    ) -> SubconceptProgress:
        """
        Schedule a reviewed subconcept and remove it from the due list.

        Args:
            progress: Progress row that was just practised
            rating: Inferred rating for the answer
            now: Review time (default: current UTC time)

        Returns:
            Updated progress row for the caller to persist
        """
        result = self.engine.review(progress, rating, now)
        updated = result.card

        self._due = [p for p in self._due if p.subconcept_slug != progress.subconcept_slug]

        logger.info(
            f"Reviewed {progress.subconcept_slug}: {Rating(rating).name}, "
            f"next review {updated.due.isoformat()} ({self.remaining_count} remaining)"
        )
        return updated

    def record_attempt(
        self,
        exercise_slug: str,
        was_correct: bool,
        now: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> ExerciseAttempt:
        """Bump the cached attempt counters for an exercise and return them."""
        attempt = record_attempt(
            self._attempts.get(exercise_slug),
            exercise_slug,
            was_correct,
            now=now,
            user_id=user_id,
        )
        self._attempts[exercise_slug] = attempt
        return attempt

    def next_exercise(
        self,
        progress: SubconceptProgress,
        exercises: Sequence[Exercise],
        last_pattern: Optional[str] = None,
    ) -> Optional[Exercise]:
        """Select the next exercise for a subconcept using cached attempts."""
        info = SubconceptSelectionInfo(
            subconcept_slug=progress.subconcept_slug,
            phase=map_state_to_phase(progress.state),
        )
        return select_exercise(
            info,
            exercises,
            list(self._attempts.values()),
            last_pattern=last_pattern,
            rng=self.rng,
        )
