"""
Unit tests for exercise content validation.
"""

import pytest
from pydantic import ValidationError

from practice_engine.enums.grading import ConstructType, GradingStrategy
from practice_engine.enums.learning import ExerciseLevel, ExerciseType
from practice_engine.errors import ExerciseDefinitionError
from practice_engine.models.exercise import Exercise, TargetConstruct, load_exercise


class TestExercise:
    """Tests for the Exercise model."""

    def test_defaults(self):
        """Test optional fields take sensible defaults."""
        exercise = Exercise(slug="print-name", subconcept="print", expected_answer="print(name)")

        assert exercise.level == ExerciseLevel.INTRO
        assert exercise.exercise_type == ExerciseType.WRITE
        assert exercise.accepted_solutions == []
        assert exercise.grading_strategy is None
        assert exercise.verify_by_execution is False

    def test_parses_content_values(self):
        """Test string values from content files become enums."""
        exercise = Exercise(
            slug="fill-append",
            subconcept="lists",
            level="edge",
            exercise_type="fill-in",
            expected_answer="append",
            grading_strategy="token",
        )

        assert exercise.level == ExerciseLevel.EDGE
        assert exercise.exercise_type == ExerciseType.FILL_IN
        assert exercise.grading_strategy == GradingStrategy.TOKEN

    @pytest.mark.parametrize("slug", ["PrintName", "print_name", "print--name", "-print", ""])
    def test_slug_must_be_kebab_case(self, slug):
        """Test non-kebab-case slugs are rejected."""
        with pytest.raises(ValidationError):
            Exercise(slug=slug, subconcept="print", expected_answer="x")

    @pytest.mark.parametrize("answer", ["", "   "])
    def test_expected_answer_required(self, answer):
        """Test blank expected answers are rejected."""
        with pytest.raises(ValidationError):
            Exercise(slug="print-name", subconcept="print", expected_answer=answer)

    def test_frozen(self):
        """Test exercises are immutable."""
        exercise = Exercise(slug="print-name", subconcept="print", expected_answer="x")

        with pytest.raises(ValidationError):
            exercise.slug = "other"


class TestTargetConstruct:
    """Tests for TargetConstruct."""

    def test_known_construct(self):
        """Test known tags resolve to the enum."""
        assert TargetConstruct(type="slice").construct == ConstructType.SLICE

    def test_unknown_construct_is_kept(self):
        """Test unknown tags load but resolve to None."""
        target = TargetConstruct(type="walrus", feedback="Try :=")

        assert target.type == "walrus"
        assert target.construct is None


class TestLoadExercise:
    """Tests for load_exercise."""

    def test_valid_mapping(self):
        """Test a valid mapping loads, ignoring unknown keys."""
        exercise = load_exercise(
            {
                "slug": "slice-middle",
                "subconcept": "slicing",
                "expected_answer": "items[1:4]",
                "target_construct": {"type": "slice"},
                "skin": "recipes",
            }
        )

        assert exercise.target_construct.type == "slice"

    def test_invalid_mapping_raises_definition_error(self):
        """Test invalid content raises ExerciseDefinitionError with details."""
        with pytest.raises(ExerciseDefinitionError) as exc_info:
            load_exercise({"slug": "Bad_Slug", "subconcept": "slicing"})

        error = exc_info.value
        assert error.error_code == "exercise_definition_error"
        assert error.details["slug"] == "Bad_Slug"
        fields = {e["field"] for e in error.details["errors"]}
        assert fields == {"slug", "expected_answer"}

    def test_missing_slug(self):
        """Test a mapping without a slug is reported as such."""
        with pytest.raises(ExerciseDefinitionError) as exc_info:
            load_exercise({"subconcept": "slicing", "expected_answer": "x"})

        assert exc_info.value.details["slug"] == "(missing)"
