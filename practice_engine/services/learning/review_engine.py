"""
Review Engine

Applies the card lifecycle on top of a pluggable MemoryModel:

    NEW → LEARNING → REVIEW ↔ RELEARNING

The memory model decides stability, difficulty, learning steps and the due
date. The engine owns everything that must hold regardless of the model:

- NEW always becomes LEARNING on the first review, whatever the rating
- reps increases by exactly one per review
- lapses increases only on Again while in REVIEW
- a lapse leaves at most LAPSE_STABILITY_CEILING of the prior stability
- due is always strictly after the review time
- corrupted input is repaired, never raised

Usage:
    from practice_engine.services.learning.review_engine import create_review_engine

    engine = create_review_engine()
    result = engine.review(card_state, Rating.GOOD, now)
    next_card = result.card
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from practice_engine.config.settings import settings
from practice_engine.enums.learning import Rating, SchedulerAlgorithm, State
from practice_engine.errors import SchedulerConfigError
from practice_engine.models.learning import CardState, ReviewLog, ReviewResult
from practice_engine.services.learning.fsrs import create_memory_model
from practice_engine.services.learning.sm2 import SM2Config, SM2MemoryModel

logger = logging.getLogger(__name__)

# Smallest step a due date is pushed forward when a model returns "now"
MIN_DUE_OFFSET = timedelta(minutes=1)


class MemoryModel(Protocol):
    """
    Stability/difficulty update rule behind the ReviewEngine.

    graduation_step is the step value that lets a LEARNING card graduate on
    its next passing review, or None for models without learning steps.
    """

    graduation_step: Optional[int]

    def schedule(self, card: CardState, rating: Rating, now: datetime) -> CardState:
        ...

    def retrievability(self, card: CardState, now: datetime) -> float:
        ...


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def create_empty_card(now: Optional[datetime] = None) -> CardState:
    """Create a new card, due immediately."""
    now = ensure_utc(now or datetime.now(timezone.utc))
    return CardState(due=now, ease_factor=settings.SM2_INITIAL_EASE_FACTOR)


class ReviewEngine:
    """
    Card lifecycle around a MemoryModel.

    Stateless apart from the model it was constructed with; review() is a
    pure function of (card, rating, now).
    """

    def __init__(
        self,
        model: MemoryModel,
        lapse_stability_ceiling: Optional[float] = None,
    ):
        """
        Initialize the review engine.

        Args:
            model: Memory model computing stability/difficulty/intervals
            lapse_stability_ceiling: Max fraction of stability kept after a
                lapse (defaults to settings.LAPSE_STABILITY_CEILING)
        """
        self.model = model
        self.lapse_stability_ceiling = (
            lapse_stability_ceiling
            if lapse_stability_ceiling is not None
            else settings.LAPSE_STABILITY_CEILING
        )

    def review(
        self,
        card: CardState,
        rating: Rating,
        now: Optional[datetime] = None,
    ) -> ReviewResult:
        """
        Process a review and return the updated card state.

        State Transitions:
            - New → Learning: First review, any rating
            - Learning → Learning: Still learning
            - Learning → Review: Card graduates
            - Review → Review: Successful review
            - Review → Relearning: Lapse (Again rating), lapses + 1
            - Relearning → Review: Recovery after relearning

        Args:
            card: Current scheduling state. Never modified.
            rating: Review rating
            now: Review time. Defaults to current UTC time; pass it
                explicitly for deterministic results.

        Returns:
            ReviewResult with the new card, was_correct and a ReviewLog
        """
        rating = Rating(rating)
        now = ensure_utc(now or datetime.now(timezone.utc))
        prior = self._sanitize(card, now)

        elapsed_days = 0.0
        if prior.last_review is not None:
            elapsed_days = max(0.0, (now - prior.last_review).total_seconds() / 86400)

        scheduled = self.model.schedule(prior, rating, now)

        state = scheduled.state
        step = scheduled.step
        if prior.state == State.NEW and state != State.LEARNING:
            # First exposure always passes through LEARNING
            state = State.LEARNING
            step = self.model.graduation_step

        stability = max(0.0, scheduled.stability)
        is_lapse = prior.state == State.REVIEW and rating == Rating.AGAIN
        if is_lapse:
            state = State.RELEARNING
            stability = min(stability, prior.stability * self.lapse_stability_ceiling)

        due = scheduled.due
        if due <= now:
            due = now + MIN_DUE_OFFSET

        new_card = replace(
            scheduled,
            state=state,
            step=step,
            stability=stability,
            reps=prior.reps + 1,
            lapses=prior.lapses + (1 if is_lapse else 0),
            elapsed_days=elapsed_days,
            scheduled_days=max(0, (due - now).days),
            due=due,
            last_review=now,
        )

        log = ReviewLog(
            rating=rating,
            state_before=prior.state,
            state_after=new_card.state,
            difficulty_before=prior.difficulty,
            difficulty_after=new_card.difficulty,
            stability_before=prior.stability,
            stability_after=new_card.stability,
            scheduled_days=new_card.scheduled_days,
            elapsed_days=elapsed_days,
            review_time=now,
        )

        logger.debug(
            f"Review {rating.name}: {prior.state.name} -> {new_card.state.name}, "
            f"stability {prior.stability:.2f} -> {new_card.stability:.2f}, "
            f"due in {new_card.scheduled_days}d"
        )

        return ReviewResult(card=new_card, was_correct=rating != Rating.AGAIN, log=log)

    def get_retrievability(self, card: CardState, now: Optional[datetime] = None) -> float:
        """
        Get current recall probability for a card.

        Args:
            card: Card state
            now: Reference time (default: current UTC time)

        Returns:
            Probability of recall (0.0 to 1.0). New cards return 1.0.
        """
        now = ensure_utc(now or datetime.now(timezone.utc))
        return self.model.retrievability(self._sanitize(card, now), now)

    def _sanitize(self, card: CardState, now: datetime) -> CardState:
        """
        Repair states that can only arise from direct data edits or
        migrations, so the memory model always sees a consistent card.
        """
        due = ensure_utc(card.due) if card.due is not None else now
        last_review = ensure_utc(card.last_review) if card.last_review is not None else None
        state = State(card.state)
        reps = max(0, card.reps)
        lapses = max(0, card.lapses)
        stability = card.stability if card.stability is not None else 0.0
        difficulty = card.difficulty if card.difficulty is not None else 0.0

        if last_review is not None and last_review > now:
            logger.warning(f"Card last_review {last_review} is after review time {now}; clamping")
            last_review = now

        if state != State.NEW and (reps == 0 or stability <= 0):
            logger.warning(
                f"Card in {state.name} with reps={reps}, stability={stability}; "
                "treating as new"
            )
            state = State.NEW

        if state == State.NEW and reps > 0:
            logger.warning(f"New card with reps={reps}; treating as learning")
            state = State.LEARNING if stability > 0 else State.NEW

        if state == State.NEW:
            return replace(
                card,
                state=State.NEW,
                stability=0.0,
                difficulty=min(1.0, max(0.0, difficulty)),
                reps=reps,
                lapses=lapses,
                elapsed_days=0.0,
                step=0,
                due=due,
                last_review=None,
                streak=0,
            )

        if last_review is None:
            # Reviewed before but the timestamp is lost; anchor it at the
            # scheduled interval before the due date, not after now
            last_review = min(now, due - timedelta(days=max(0, card.scheduled_days)))

        return replace(
            card,
            state=state,
            stability=stability,
            difficulty=min(1.0, max(0.0, difficulty)),
            reps=reps,
            lapses=lapses,
            elapsed_days=max(0.0, card.elapsed_days or 0.0),
            scheduled_days=max(0, card.scheduled_days or 0),
            due=due,
            last_review=last_review,
            streak=max(0, card.streak),
        )


def create_review_engine(algorithm: Optional[str] = None) -> ReviewEngine:
    """
    Create a ReviewEngine with the configured memory model.

    Args:
        algorithm: "fsrs" or "sm2" (defaults to settings.SCHEDULER_ALGORITHM)

    Returns:
        Configured ReviewEngine

    Raises:
        SchedulerConfigError: If the algorithm is unknown
    """
    name = algorithm or settings.SCHEDULER_ALGORITHM
    try:
        selected = SchedulerAlgorithm(name.lower())
    except ValueError as e:
        raise SchedulerConfigError(
            f"Unknown scheduler algorithm: {name}",
            details={"allowed": [a.value for a in SchedulerAlgorithm]},
        ) from e

    if selected == SchedulerAlgorithm.SM2:
        model = SM2MemoryModel(
            SM2Config(
                initial_ease_factor=settings.SM2_INITIAL_EASE_FACTOR,
                min_ease_factor=settings.SM2_MIN_EASE_FACTOR,
                max_ease_factor=settings.SM2_MAX_EASE_FACTOR,
                initial_interval=settings.SM2_INITIAL_INTERVAL,
                graduating_interval=settings.SM2_GRADUATING_INTERVAL,
            )
        )
    else:
        model = create_memory_model(
            retention=settings.FSRS_DEFAULT_RETENTION,
            max_interval=settings.FSRS_MAX_INTERVAL_DAYS,
            enable_fuzzing=settings.FSRS_ENABLE_FUZZING,
        )

    return ReviewEngine(model)
