"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across the unit tests: a fixed
review time, card/progress builders, an exercise factory, a seeded random
source and a scriptable execution oracle.
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import pytest

from practice_engine.enums.learning import ExerciseLevel, ExerciseType, State
from practice_engine.models.exercise import Exercise
from practice_engine.models.grading import ExecutionOutcome
from practice_engine.models.learning import CardState, SubconceptProgress
from practice_engine.services.learning.fsrs import FSRSMemoryModel
from practice_engine.services.learning.review_engine import ReviewEngine


# ============================================================================
# Time and Randomness
# ============================================================================


@pytest.fixture
def now() -> datetime:
    """Fixed review time so scheduling results are reproducible."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def seeded_rng() -> Callable[[], float]:
    """Deterministic random source for selection tests."""
    return random.Random(42).random


# ============================================================================
# Scheduling Fixtures
# ============================================================================


@pytest.fixture
def fsrs_engine() -> ReviewEngine:
    """ReviewEngine over a default, non-fuzzed FSRS model."""
    return ReviewEngine(FSRSMemoryModel(desired_retention=0.9, maximum_interval=365))


@pytest.fixture
def new_card(now) -> CardState:
    """A card that has never been reviewed."""
    return CardState(due=now)


@pytest.fixture
def review_card(now) -> CardState:
    """A graduated card, last reviewed 10 days ago and due now."""
    return CardState(
        state=State.REVIEW,
        stability=10.0,
        difficulty=0.5,
        reps=5,
        lapses=0,
        scheduled_days=10,
        due=now,
        last_review=now - timedelta(days=10),
        step=None,
    )


@pytest.fixture
def make_progress(now) -> Callable[..., SubconceptProgress]:
    """Factory for SubconceptProgress rows."""

    def _make(subconcept_slug: str = "slicing", **overrides: Any) -> SubconceptProgress:
        values = dict(
            subconcept_slug=subconcept_slug,
            concept_slug="collections",
            user_id="user-1",
            due=now,
        )
        values.update(overrides)
        return SubconceptProgress(**values)

    return _make


# ============================================================================
# Exercise Fixtures
# ============================================================================


@pytest.fixture
def make_exercise() -> Callable[..., Exercise]:
    """Factory for Exercise records with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Exercise:
        counter["n"] += 1
        values = dict(
            slug=f"exercise-{counter['n']}",
            subconcept="slicing",
            level=ExerciseLevel.INTRO,
            exercise_type=ExerciseType.WRITE,
            expected_answer="items[1:4]",
        )
        values.update(overrides)
        return Exercise(**values)

    return _make


@pytest.fixture
def exercise_fixtures(make_exercise) -> list[Exercise]:
    """A spread of exercise shapes used for grading round-trip checks."""
    return [
        make_exercise(expected_answer='print("hello")'),
        make_exercise(expected_answer="print(name)"),
        make_exercise(
            expected_answer="items[1:4]",
            accepted_solutions=["items[1], items[2], items[3]"],
            target_construct={"type": "slice"},
        ),
        make_exercise(
            expected_answer="[x * 2 for x in numbers]",
            target_construct={"type": "comprehension", "feedback": "Try a comprehension"},
        ),
        make_exercise(expected_answer='f"Hello {name}"', target_construct={"type": "f-string"}),
        make_exercise(
            expected_answer="for i, item in enumerate(items):\n    print(i, item)",
            target_construct={"type": "enumerate"},
        ),
        make_exercise(exercise_type=ExerciseType.FILL_IN, expected_answer="append"),
        make_exercise(
            exercise_type=ExerciseType.PREDICT,
            expected_answer="Hello World",
            code='print("Hello World")',
        ),
        make_exercise(
            exercise_type=ExerciseType.PREDICT,
            expected_answer="{1, 2, 3}",
            accepted_solutions=["{3, 2, 1}"],
            code="print({3, 1, 2})",
        ),
        make_exercise(expected_answer='{"key": "value"}'),
    ]


# ============================================================================
# Execution Oracle
# ============================================================================


class FakeOracle:
    """
    Scriptable execution oracle.

    Returns a fixed outcome, raises a configured exception, or sleeps past
    the grading timeout. Every executed program is recorded in `calls`.
    """

    def __init__(
        self,
        outcome: Optional[ExecutionOutcome] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        available: bool = True,
    ):
        self.outcome = outcome or ExecutionOutcome(success=True, output="")
        self.error = error
        self.delay = delay
        self.available = available
        self.calls: list[tuple[str, Optional[str]]] = []

    async def execute(self, code: str, expected: Optional[str] = None) -> ExecutionOutcome:
        self.calls.append((code, expected))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.outcome


@pytest.fixture
def fake_oracle() -> Callable[..., FakeOracle]:
    """Factory for FakeOracle instances."""
    return FakeOracle
