"""
Unit tests for exercise selection.

Tests level progression in the learning phase, least-seen rotation in the
review phase, pattern anti-repeat and exercise type balancing.
"""

import pytest

from practice_engine.enums.learning import ExerciseLevel, ExerciseType, Phase, State
from practice_engine.models.learning import ExerciseAttempt, SubconceptSelectionInfo
from practice_engine.services.learning.exercise_selector import (
    get_underrepresented_type,
    map_state_to_phase,
    select_exercise,
    select_exercise_by_type,
)

LEARNING = SubconceptSelectionInfo("slicing", Phase.LEARNING)
REVIEW = SubconceptSelectionInfo("slicing", Phase.REVIEW)


def _first():
    return 0.0


def _last():
    return 0.99


class TestMapStateToPhase:
    """Tests for map_state_to_phase."""

    @pytest.mark.parametrize("state", [State.NEW, State.LEARNING, State.RELEARNING])
    def test_unsettled_states_are_learning(self, state):
        """Test every non-Review state selects by level progression."""
        assert map_state_to_phase(state) == Phase.LEARNING

    def test_review_state_is_review(self):
        """Test graduated cards select by least-seen rotation."""
        assert map_state_to_phase(State.REVIEW) == Phase.REVIEW


class TestLearningPhase:
    """Tests for level progression."""

    def test_empty_pool_returns_none(self):
        """Test a subconcept without exercises yields no selection."""
        assert select_exercise(LEARNING, [], []) is None

    def test_other_subconcepts_are_ignored(self, make_exercise):
        """Test exercises from other subconcepts are never picked."""
        exercises = [make_exercise(subconcept="comprehensions")]
        assert select_exercise(LEARNING, exercises, []) is None

    def test_unseen_intro_first(self, make_exercise):
        """Test an unseen intro exercise beats an unseen practice exercise."""
        intro = make_exercise(level=ExerciseLevel.INTRO)
        practice = make_exercise(level=ExerciseLevel.PRACTICE)

        assert select_exercise(LEARNING, [practice, intro], [], rng=_last) == intro

    def test_moves_to_next_level_when_seen(self, make_exercise):
        """Test all intro exercises seen moves on to the unseen practice one."""
        intro_a = make_exercise(slug="intro-a", level=ExerciseLevel.INTRO)
        intro_b = make_exercise(slug="intro-b", level=ExerciseLevel.INTRO)
        practice = make_exercise(slug="practice-a", level=ExerciseLevel.PRACTICE)
        attempts = [
            ExerciseAttempt("intro-a", times_seen=1),
            ExerciseAttempt("intro-b", times_seen=2),
        ]

        selected = select_exercise(LEARNING, [intro_a, intro_b, practice], attempts)

        assert selected == practice

    def test_levels_without_exercises_are_skipped(self, make_exercise):
        """Test a missing level does not stop progression."""
        edge = make_exercise(level=ExerciseLevel.EDGE)
        assert select_exercise(LEARNING, [edge], []) == edge

    def test_all_levels_exhausted_picks_least_seen(self, make_exercise):
        """Test the fallback once every exercise has been seen."""
        intro = make_exercise(slug="intro-a", level=ExerciseLevel.INTRO)
        practice = make_exercise(slug="practice-a", level=ExerciseLevel.PRACTICE)
        attempts = [
            ExerciseAttempt("intro-a", times_seen=5),
            ExerciseAttempt("practice-a", times_seen=2),
        ]

        assert select_exercise(LEARNING, [intro, practice], attempts) == practice

    def test_seeded_rng_is_reproducible(self, make_exercise):
        """Test the same seed always selects the same exercise."""
        import random

        exercises = [make_exercise() for _ in range(5)]
        first = select_exercise(LEARNING, exercises, [], rng=random.Random(7).random)
        second = select_exercise(LEARNING, exercises, [], rng=random.Random(7).random)

        assert first == second


class TestReviewPhase:
    """Tests for least-seen rotation."""

    def test_least_seen_wins(self, make_exercise):
        """Test the exercise with the fewest presentations is chosen."""
        a = make_exercise(slug="ex-a")
        b = make_exercise(slug="ex-b")
        c = make_exercise(slug="ex-c", level=ExerciseLevel.INTEGRATED)
        attempts = [
            ExerciseAttempt("ex-a", times_seen=3),
            ExerciseAttempt("ex-b", times_seen=1),
            ExerciseAttempt("ex-c", times_seen=4),
        ]

        assert select_exercise(REVIEW, [a, b, c], attempts) == b

    def test_review_ignores_levels(self, make_exercise):
        """Test an unseen integrated exercise beats a seen intro one."""
        intro = make_exercise(slug="ex-a", level=ExerciseLevel.INTRO)
        integrated = make_exercise(slug="ex-b", level=ExerciseLevel.INTEGRATED)
        attempts = [ExerciseAttempt("ex-a", times_seen=1)]

        assert select_exercise(REVIEW, [intro, integrated], attempts) == integrated

    def test_ties_broken_by_rng(self, make_exercise):
        """Test the random source chooses among equally seen exercises."""
        a = make_exercise(slug="ex-a")
        b = make_exercise(slug="ex-b")

        assert select_exercise(REVIEW, [a, b], [], rng=_first) == a
        assert select_exercise(REVIEW, [a, b], [], rng=_last) == b


class TestAntiRepeat:
    """Tests for pattern anti-repeat."""

    def test_prefers_different_pattern(self, make_exercise):
        """Test a candidate with a new pattern is preferred, whatever the rng."""
        same = make_exercise(slug="ex-a", pattern="index-access")
        different = make_exercise(slug="ex-b", pattern="negative-index")

        for rng in (_first, _last):
            selected = select_exercise(LEARNING, [same, different], [], "index-access", rng)
            assert selected == different

    def test_never_blocks_selection(self, make_exercise):
        """Test a repeated pattern is still chosen when it is the only option."""
        only = make_exercise(pattern="index-access")
        assert select_exercise(REVIEW, [only], [], last_pattern="index-access") == only

    def test_all_candidates_share_pattern(self, make_exercise):
        """Test anti-repeat keeps every candidate when none differ."""
        a = make_exercise(slug="ex-a", pattern="index-access")
        b = make_exercise(slug="ex-b", pattern="index-access")

        assert select_exercise(REVIEW, [a, b], [], "index-access", _last) == b

    def test_does_not_override_least_seen(self, make_exercise):
        """Test anti-repeat only applies among equally ranked candidates."""
        same = make_exercise(slug="ex-a", pattern="index-access")
        different = make_exercise(slug="ex-b", pattern="negative-index")
        attempts = [ExerciseAttempt("ex-b", times_seen=3)]

        assert select_exercise(REVIEW, [same, different], attempts, "index-access") == same


class TestTypeBalancing:
    """Tests for exercise type ratios."""

    def test_empty_session_prefers_write(self):
        """Test an empty session starts with a write exercise."""
        assert get_underrepresented_type([]) == ExerciseType.WRITE

    def test_missing_type_is_preferred(self):
        """Test a session of only writes asks for the first lagging type."""
        history = [ExerciseType.WRITE, ExerciseType.WRITE]
        assert get_underrepresented_type(history) == ExerciseType.FILL_IN

    def test_balanced_session_returns_none(self):
        """Test a session at its target ratios has no preference."""
        history = [
            ExerciseType.WRITE,
            ExerciseType.FILL_IN,
            ExerciseType.PREDICT,
            ExerciseType.WRITE,
        ]
        assert get_underrepresented_type(history) is None

    def test_custom_ratios(self):
        """Test target ratios can be supplied by the caller."""
        history = [ExerciseType.WRITE] * 4
        ratios = {ExerciseType.WRITE: 0.2, ExerciseType.PREDICT: 0.8}
        assert get_underrepresented_type(history, ratios) == ExerciseType.PREDICT

    def test_select_by_type_prefers_lagging_type(self, make_exercise):
        """Test selection picks the underrepresented type when available."""
        write = make_exercise(exercise_type=ExerciseType.WRITE)
        fill_in = make_exercise(exercise_type=ExerciseType.FILL_IN, expected_answer="append")
        history = [ExerciseType.WRITE, ExerciseType.WRITE]

        for rng in (_first, _last):
            assert select_exercise_by_type([write, fill_in], history, rng=rng) == fill_in

    def test_select_by_type_falls_back_to_any(self, make_exercise):
        """Test selection still returns something when the type is missing."""
        write = make_exercise(exercise_type=ExerciseType.WRITE)
        history = [ExerciseType.WRITE, ExerciseType.WRITE]

        assert select_exercise_by_type([write], history) == write

    def test_select_by_type_empty(self):
        """Test an empty pool yields no selection."""
        assert select_exercise_by_type([], []) is None
