"""
FSRS (Free Spaced Repetition Scheduler) Memory Model

This module wraps the FSRS library to provide a MemoryModel for the
ReviewEngine. FSRS models memory with stability and difficulty and
outperforms SM-2 on recall prediction.

Key Concepts:
- Stability (S): Days until recall probability decays to the target retention
- Difficulty (D): Inherent difficulty of the card. The library works on a
  1-10 scale; CardState stores it on 0-1 (see to_unit_difficulty)
- Retrievability (R): Current recall probability based on elapsed time

The library has no explicit "New" state: new cards are State.Learning with
no stability and no last review. This module translates between the two.

Usage:
    from practice_engine.services.learning.fsrs import FSRSMemoryModel

    model = FSRSMemoryModel(desired_retention=0.9, maximum_interval=365)
    next_card = model.schedule(card_state, Rating.GOOD, now)
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from fsrs import Card as FSRSCard, Rating as FSRSRating, Scheduler, State as FSRSState

from practice_engine.enums.learning import Rating, State
from practice_engine.models.learning import CardState

logger = logging.getLogger(__name__)

# Library difficulty bounds
MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0

DEFAULT_LEARNING_STEPS = (timedelta(minutes=1), timedelta(minutes=10))
DEFAULT_RELEARNING_STEPS = (timedelta(minutes=10),)

_RATING_MAP = {
    Rating.AGAIN: FSRSRating.Again,
    Rating.HARD: FSRSRating.Hard,
    Rating.GOOD: FSRSRating.Good,
    Rating.EASY: FSRSRating.Easy,
}

_STATE_MAP = {
    State.NEW: FSRSState.Learning,  # New cards are Learning with no memory yet
    State.LEARNING: FSRSState.Learning,
    State.REVIEW: FSRSState.Review,
    State.RELEARNING: FSRSState.Relearning,
}

_STATE_REVERSE_MAP = {
    FSRSState.Learning: State.LEARNING,
    FSRSState.Review: State.REVIEW,
    FSRSState.Relearning: State.RELEARNING,
}


def to_unit_difficulty(difficulty: float) -> float:
    """Map library difficulty (1-10) onto 0-1."""
    clamped = min(MAX_DIFFICULTY, max(MIN_DIFFICULTY, difficulty))
    return (clamped - MIN_DIFFICULTY) / (MAX_DIFFICULTY - MIN_DIFFICULTY)


def from_unit_difficulty(difficulty: float) -> float:
    """Map 0-1 difficulty back onto the library's 1-10 scale."""
    clamped = min(1.0, max(0.0, difficulty))
    return MIN_DIFFICULTY + clamped * (MAX_DIFFICULTY - MIN_DIFFICULTY)


class FSRSMemoryModel:
    """
    FSRS memory model backed by the fsrs library.

    Constructed explicitly and holds no per-card state, so one instance can
    serve any number of ReviewEngines. Fuzzing is off by default: identical
    (card, rating, now) inputs always produce identical outputs.

    Attributes:
        desired_retention: Target retention probability (default 0.9 = 90%)
        maximum_interval: Maximum days between reviews (default 365)
        learning_steps: Same-day steps before a new card graduates
        relearning_steps: Same-day steps before a lapsed card recovers
    """

    def __init__(
        self,
        desired_retention: float = 0.9,
        maximum_interval: int = 365,
        learning_steps: tuple[timedelta, ...] = DEFAULT_LEARNING_STEPS,
        relearning_steps: tuple[timedelta, ...] = DEFAULT_RELEARNING_STEPS,
        enable_fuzzing: bool = False,
        parameters: Optional[tuple[float, ...]] = None,
    ):
        """
        Initialize the FSRS memory model.

        Args:
            desired_retention: Target recall probability (0.7-0.99)
            maximum_interval: Maximum interval in days
            learning_steps: Learning step durations
            relearning_steps: Relearning step durations
            enable_fuzzing: Add random jitter to review intervals
            parameters: Optimized FSRS weights; library defaults if None
        """
        self.desired_retention = desired_retention
        self.maximum_interval = maximum_interval
        self.learning_steps = tuple(learning_steps)
        self.relearning_steps = tuple(relearning_steps)

        scheduler_kwargs = dict(
            desired_retention=desired_retention,
            learning_steps=self.learning_steps,
            relearning_steps=self.relearning_steps,
            maximum_interval=maximum_interval,
            enable_fuzzing=enable_fuzzing,
        )
        if parameters is not None:
            scheduler_kwargs["parameters"] = tuple(parameters)

        self._fsrs = Scheduler(**scheduler_kwargs)

    @property
    def graduation_step(self) -> int:
        """Step at which a Learning card graduates on its next passing review."""
        return len(self.learning_steps)

    def schedule(self, card: CardState, rating: Rating, now: datetime) -> CardState:
        """
        Compute the next memory state for a card.

        Only the memory fields (stability, difficulty, state, step, due) are
        decided here. Counters, elapsed days and lifecycle rules are applied
        by the ReviewEngine.

        Args:
            card: Sanitized card state (aware UTC datetimes)
            rating: Review rating
            now: Review time (aware UTC)

        Returns:
            New CardState with updated memory fields
        """
        fsrs_card = self._to_fsrs_card(card)
        result_card, _ = self._fsrs.review_card(fsrs_card, _RATING_MAP[rating], now)

        return replace(
            card,
            state=_STATE_REVERSE_MAP[result_card.state],
            stability=result_card.stability,
            difficulty=to_unit_difficulty(result_card.difficulty),
            step=result_card.step,
            due=result_card.due,
        )

    def retrievability(self, card: CardState, now: datetime) -> float:
        """
        Get current recall probability for a card.

        Uses the library's forgetting curve.

        Args:
            card: Card state with stability and last_review
            now: Reference time

        Returns:
            Probability of recall (0.0 to 1.0). New cards return 1.0.
        """
        if card.is_new() or card.last_review is None or card.stability <= 0:
            return 1.0

        return self._fsrs.get_card_retrievability(self._to_fsrs_card(card), now)

    def _to_fsrs_card(self, card: CardState) -> FSRSCard:
        """Build a library Card from our CardState."""
        if card.is_new():
            return FSRSCard(
                card_id=0,
                state=FSRSState.Learning,
                step=0,
                due=card.due,
            )

        fsrs_state = _STATE_MAP[card.state]
        step = card.step
        if fsrs_state == FSRSState.Review:
            step = None
        elif step is None:
            step = 0

        return FSRSCard(
            card_id=0,
            state=fsrs_state,
            step=step,
            stability=card.stability,
            difficulty=from_unit_difficulty(card.difficulty),
            due=card.due,
            last_review=card.last_review,
        )


def create_memory_model(
    retention: float = 0.9,
    max_interval: int = 365,
    enable_fuzzing: bool = False,
) -> FSRSMemoryModel:
    """
    Create a configured FSRS memory model.

    Args:
        retention: Target retention probability (default 0.9)
        max_interval: Maximum interval in days (default 365)
        enable_fuzzing: Add jitter to intervals (default False)

    Returns:
        Configured FSRSMemoryModel instance
    """
    logger.info(
        f"Creating FSRS memory model (retention={retention}, "
        f"max_interval={max_interval}d, fuzzing={enable_fuzzing})"
    )
    return FSRSMemoryModel(
        desired_retention=retention,
        maximum_interval=max_interval,
        enable_fuzzing=enable_fuzzing,
    )
