"""
Legacy SM-2 Memory Model

SuperMemo-2 scheduling kept for backward compatibility with progress rows
written before the FSRS migration. It speaks the same CardState contract as
FSRSMemoryModel so selection and grading never need to know which model is
active.

SM-2 works on the 0-5 quality scale:
- 0-2: Failure (streak resets, review tomorrow)
- 3: Hard (correct but difficult, ease decreases)
- 4: Good (correct with some hesitation, ease unchanged)
- 5: Easy (perfect recall, ease increases)

Mapping onto CardState:
- stability is the interval in days
- difficulty is the ease factor mapped onto 0-1 (lowest ease = hardest)
- streak is SM-2's repetition count
- Learning/Relearning cards graduate to Review once the interval reaches
  the graduating interval
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from practice_engine.enums.learning import Rating, State
from practice_engine.models.learning import CardState
from practice_engine.services.learning.rating import rating_to_quality

logger = logging.getLogger(__name__)

QUALITY_PASSING_THRESHOLD = 3


@dataclass(frozen=True)
class SM2Config:
    """SM-2 parameters."""

    initial_ease_factor: float = 2.5
    min_ease_factor: float = 1.3
    max_ease_factor: float = 3.0
    initial_interval: int = 1
    graduating_interval: int = 6


DEFAULT_SM2_CONFIG = SM2Config()


def calculate_new_ease_factor(
    quality: int, current_ease_factor: float, config: SM2Config = DEFAULT_SM2_CONFIG
) -> float:
    """
    SM-2 ease factor adjustment.

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), clamped to
    [min_ease_factor, max_ease_factor].
    """
    adjustment = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
    new_ease = current_ease_factor + adjustment
    return max(config.min_ease_factor, min(config.max_ease_factor, new_ease))


def calculate_new_interval(
    repetitions: int,
    current_interval: int,
    ease_factor: float,
    config: SM2Config = DEFAULT_SM2_CONFIG,
) -> int:
    """Interval in days after the given number of consecutive successes."""
    if repetitions == 1:
        return config.initial_interval
    if repetitions == 2:
        return config.graduating_interval
    return round(current_interval * ease_factor)


class SM2MemoryModel:
    """
    Legacy SM-2 memory model.

    Deterministic and stateless; configuration is passed at construction.
    """

    # SM-2 has no learning steps
    graduation_step = None

    def __init__(self, config: SM2Config = DEFAULT_SM2_CONFIG):
        self.config = config

    def schedule(self, card: CardState, rating: Rating, now: datetime) -> CardState:
        """
        Compute the next memory state for a card from a 4-valued rating.

        The rating is converted to the legacy quality scale first.
        """
        return self.apply_quality(card, rating_to_quality(rating), now)

    def apply_quality(self, card: CardState, quality: int, now: datetime) -> CardState:
        """
        Compute the next memory state for a card from a 0-5 quality score.

        Args:
            card: Sanitized card state
            quality: Legacy quality score (0-5)
            now: Review time

        Returns:
            New CardState with updated memory fields
        """
        quality = max(0, min(5, quality))
        ease_factor = card.ease_factor if card.ease_factor > 0 else self.config.initial_ease_factor
        current_interval = max(0, int(round(card.stability)))

        if quality < QUALITY_PASSING_THRESHOLD:
            # Failure: reset streak, keep ease factor, review tomorrow
            interval = 1
            streak = 0
            if card.state == State.REVIEW:
                next_state = State.RELEARNING
            elif card.state == State.NEW:
                next_state = State.LEARNING
            else:
                next_state = card.state
        else:
            ease_factor = calculate_new_ease_factor(quality, ease_factor, self.config)
            streak = card.streak + 1
            interval = calculate_new_interval(streak, current_interval, ease_factor, self.config)
            if interval >= self.config.graduating_interval:
                next_state = State.REVIEW
            elif card.state in (State.NEW, State.LEARNING):
                next_state = State.LEARNING
            else:
                next_state = card.state

        logger.debug(
            f"SM-2 q={quality}: interval {current_interval}d -> {interval}d, "
            f"ease {card.ease_factor:.2f} -> {ease_factor:.2f}"
        )

        return replace(
            card,
            state=next_state,
            stability=float(interval),
            difficulty=self._ease_to_difficulty(ease_factor),
            ease_factor=ease_factor,
            streak=streak,
            step=None,
            due=now + timedelta(days=interval),
        )

    def retrievability(self, card: CardState, now: datetime) -> float:
        """
        Approximate recall probability.

        SM-2 has no forgetting curve; this treats the interval as the
        point where recall drops to 90%, on an exponential decay.
        """
        if card.is_new() or card.last_review is None or card.stability <= 0:
            return 1.0
        elapsed = max(0.0, (now - card.last_review).total_seconds() / 86400)
        return 0.9 ** (elapsed / card.stability)

    def _ease_to_difficulty(self, ease_factor: float) -> float:
        span = self.config.max_ease_factor - self.config.min_ease_factor
        if span <= 0:
            return 0.0
        return min(1.0, max(0.0, (self.config.max_ease_factor - ease_factor) / span))
