"""
Unit tests for the FSRS memory model.

Tests the library wrapper: difficulty scale mapping, state translation,
learning steps and retrievability.

Note: These tests require the fsrs package to be installed.
"""

from datetime import timedelta

import pytest

from practice_engine.enums.learning import Rating, State
from practice_engine.models.learning import CardState
from practice_engine.services.learning.fsrs import (
    FSRSMemoryModel,
    create_memory_model,
    from_unit_difficulty,
    to_unit_difficulty,
)


class TestDifficultyMapping:
    """Tests for the 1-10 <-> 0-1 difficulty mapping."""

    def test_library_bounds_map_to_unit_bounds(self):
        """Test the library's extremes map onto 0 and 1."""
        assert to_unit_difficulty(1.0) == 0.0
        assert to_unit_difficulty(10.0) == 1.0
        assert to_unit_difficulty(5.5) == pytest.approx(0.5)

    def test_out_of_range_values_are_clamped(self):
        """Test values outside either scale are clamped."""
        assert to_unit_difficulty(-3.0) == 0.0
        assert to_unit_difficulty(42.0) == 1.0
        assert from_unit_difficulty(-0.5) == 1.0
        assert from_unit_difficulty(1.5) == 10.0

    def test_mapping_is_invertible(self):
        """Test mapping back and forth preserves the value."""
        assert to_unit_difficulty(from_unit_difficulty(0.37)) == pytest.approx(0.37)


class TestFSRSMemoryModel:
    """Tests for FSRSMemoryModel.schedule()."""

    @pytest.fixture
    def model(self):
        """Create a default, deterministic model."""
        return FSRSMemoryModel(desired_retention=0.9, maximum_interval=365)

    def test_model_initialization(self, model):
        """Test model keeps its configuration."""
        assert model.desired_retention == 0.9
        assert model.maximum_interval == 365
        assert model.graduation_step == len(model.learning_steps) == 2

    def test_new_card_good_enters_learning(self, model, new_card, now):
        """Test a first Good review starts the learning steps."""
        result = model.schedule(new_card, Rating.GOOD, now)

        assert result.state == State.LEARNING
        assert result.step == 1
        assert result.stability > 0
        assert 0.0 <= result.difficulty <= 1.0
        assert result.due > now

    def test_new_card_stability_increases_with_rating(self, model, new_card, now):
        """Test initial stability orders Again < Hard < Good < Easy."""
        stabilities = [
            model.schedule(new_card, rating, now).stability
            for rating in (Rating.AGAIN, Rating.HARD, Rating.GOOD, Rating.EASY)
        ]
        assert stabilities == sorted(stabilities)

    def test_learning_card_graduates_on_last_step(self, model, new_card, now):
        """Test Good on the last learning step graduates to Review."""
        first = model.schedule(new_card, Rating.GOOD, now)
        later = now + timedelta(minutes=10)
        learning = CardState(
            state=first.state,
            stability=first.stability,
            difficulty=first.difficulty,
            reps=1,
            step=first.step,
            due=first.due,
            last_review=now,
        )

        result = model.schedule(learning, Rating.GOOD, later)

        assert result.state == State.REVIEW
        assert result.step is None
        assert result.due >= later + timedelta(days=1)

    def test_review_card_again_relearns(self, model, review_card, now):
        """Test Again on a Review card moves it to Relearning."""
        result = model.schedule(review_card, Rating.AGAIN, now)

        assert result.state == State.RELEARNING
        assert result.stability < review_card.stability

    def test_schedule_does_not_touch_counters(self, model, review_card, now):
        """Test reps and lapses are left to the ReviewEngine."""
        result = model.schedule(review_card, Rating.AGAIN, now)

        assert result.reps == review_card.reps
        assert result.lapses == review_card.lapses

    def test_schedule_is_deterministic(self, model, review_card, now):
        """Test identical inputs give identical outputs."""
        first = model.schedule(review_card, Rating.GOOD, now)
        second = model.schedule(review_card, Rating.GOOD, now)
        assert first == second


class TestRetrievability:
    """Tests for recall probability."""

    @pytest.fixture
    def model(self):
        return FSRSMemoryModel()

    def test_new_card_retrievability_is_one(self, model, new_card, now):
        """Test new cards report full recall."""
        assert model.retrievability(new_card, now) == 1.0

    def test_retrievability_decays_over_time(self, model, review_card, now):
        """Test recall probability falls as time passes."""
        soon = model.retrievability(review_card, now - timedelta(days=9))
        later = model.retrievability(review_card, now + timedelta(days=30))

        assert 0.0 < later < soon <= 1.0


class TestCreateMemoryModel:
    """Tests for create_memory_model factory."""

    def test_create_with_defaults(self):
        """Test creating a model with default parameters."""
        model = create_memory_model()
        assert model.desired_retention == 0.9
        assert model.maximum_interval == 365

    def test_create_with_custom_params(self):
        """Test creating a model with custom parameters."""
        model = create_memory_model(retention=0.85, max_interval=180)
        assert model.desired_retention == 0.85
        assert model.maximum_interval == 180
