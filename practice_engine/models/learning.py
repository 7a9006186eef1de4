"""
Learning System Models

Data contracts shared by the scheduler, the exercise selector and the due
set manager.

ARCHITECTURE NOTE:
    Scheduling state (CardState, SubconceptProgress, ExerciseAttempt) is held
    in plain dataclasses. The core never mutates them in place: every
    operation returns a new copy built with dataclasses.replace(), so the
    caller decides whether to persist it.

    Exercise content arrives from an external loader and is validated with
    Pydantic (see practice_engine.models.exercise).

All datetimes are timezone-aware UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Optional

from practice_engine.enums.learning import Phase, Rating, State


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class CardState:
    """
    Scheduling state of one subconcept, shared by every memory model.

    Maps to the scheduling columns of the subconcept_progress table
    (see services.learning.mappers).

    Attributes:
        stability: Memory strength in days (>= 0)
        difficulty: Intrinsic difficulty on a 0-1 scale
        state: Position in the New/Learning/Review/Relearning machine
        reps: Total number of reviews (never decreases)
        lapses: Times forgotten after graduating (never decreases)
        elapsed_days: Days between the previous two reviews
        scheduled_days: Interval chosen at the last review, in days
        due: Next review time
        last_review: Time of the last review, None for new cards
        step: Index into the learning/relearning steps, None in Review
        ease_factor: Legacy SM-2 ease factor
        streak: Consecutive successful reviews (legacy SM-2 repetitions)
    """

    stability: float = 0.0
    difficulty: float = 0.0
    state: State = State.NEW
    reps: int = 0
    lapses: int = 0
    elapsed_days: float = 0.0
    scheduled_days: int = 0
    due: datetime = field(default_factory=utcnow)
    last_review: Optional[datetime] = None
    step: Optional[int] = 0
    ease_factor: float = 2.5
    streak: int = 0

    def is_new(self) -> bool:
        """Check if this card has never been reviewed."""
        return self.state == State.NEW


CARD_STATE_FIELDS = tuple(f.name for f in fields(CardState))


@dataclass
class ReviewLog:
    """Log entry for a review event."""

    rating: Rating
    state_before: State
    state_after: State
    difficulty_before: float
    difficulty_after: float
    stability_before: float
    stability_after: float
    scheduled_days: int
    elapsed_days: float
    review_time: datetime = field(default_factory=utcnow)


@dataclass
class ReviewResult:
    """Outcome of ReviewEngine.review()."""

    card: CardState
    was_correct: bool
    log: ReviewLog


@dataclass
class SubconceptProgress(CardState):
    """
    Progress row for one (user, language, subconcept).

    Extends CardState with the identifying columns. Created on first
    exposure to a subconcept and never deleted.
    """

    subconcept_slug: str = ""
    concept_slug: str = ""
    user_id: Optional[str] = None
    language: str = "python"

    @property
    def phase(self) -> Phase:
        """Selection phase derived from the scheduler state."""
        return Phase.REVIEW if self.state == State.REVIEW else Phase.LEARNING

    def card_state(self) -> CardState:
        """Extract the scheduling subset of this row."""
        return CardState(**{name: getattr(self, name) for name in CARD_STATE_FIELDS})


@dataclass
class ExerciseAttempt:
    """Per-(user, exercise) presentation counters."""

    exercise_slug: str
    times_seen: int = 0
    times_correct: int = 0
    last_seen_at: Optional[datetime] = None
    user_id: Optional[str] = None


@dataclass
class ReviewInput:
    """Grading signals used to infer a rating."""

    is_correct: bool
    hint_used: bool = False
    response_time_ms: int = 0
    used_ast_match: bool = False


@dataclass
class QualityInput(ReviewInput):
    """Signals for the legacy 0-5 quality inference."""

    current_reps: Optional[int] = None


@dataclass
class SubconceptSelectionInfo:
    """What the exercise selector needs to know about a subconcept."""

    subconcept_slug: str
    phase: Phase
