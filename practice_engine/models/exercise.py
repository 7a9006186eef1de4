"""
Exercise Content Models (Pydantic)

Immutable exercise records as handed over by the content loader. The
loader itself (YAML files, blueprints, skins) is outside this package; it
calls load_exercise() for each raw mapping so malformed content fails
loudly before it ever reaches the grader.

Validation rules:
    - slug is kebab-case (lowercase letters, digits, hyphens)
    - expected_answer is present and non-empty
    - accepted_solutions is a list of strings
"""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from practice_engine.enums.grading import ConstructType, GradingStrategy
from practice_engine.enums.learning import ExerciseLevel, ExerciseType
from practice_engine.errors import ExerciseDefinitionError

KEBAB_CASE_REGEX = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


class TargetConstruct(BaseModel):
    """
    Idiom an exercise wants the learner to use.

    The type is kept as a plain string so content can name constructs this
    version does not detect yet; those are simply never reported as used.
    """

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Construct tag, e.g. 'slice'")
    feedback: Optional[str] = Field(
        None, description="Coaching shown when the answer is correct without it"
    )

    @property
    def construct(self) -> Optional[ConstructType]:
        """The construct as an enum, or None if this version can't detect it."""
        try:
            return ConstructType(self.type)
        except ValueError:
            return None


class Exercise(BaseModel):
    """
    Immutable exercise content record.

    Exercises belong to exactly one subconcept. The grading fields
    (expected_answer, accepted_solutions, grading_strategy,
    verification_script, verify_by_execution, code) drive strategy
    resolution in services.grading.strategies.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    slug: str
    subconcept: str
    level: ExerciseLevel = ExerciseLevel.INTRO
    pattern: Optional[str] = Field(None, description="Tag used for anti-repeat")
    exercise_type: ExerciseType = ExerciseType.WRITE
    expected_answer: str
    accepted_solutions: list[str] = Field(default_factory=list)
    target_construct: Optional[TargetConstruct] = None
    verification_script: Optional[str] = None
    grading_strategy: Optional[GradingStrategy] = None

    # Legacy flag: grade a write exercise by running it through the template
    verify_by_execution: bool = False
    verification_template: Optional[str] = None
    # Snippet whose output a predict exercise asks about
    code: Optional[str] = None

    concept: Optional[str] = None
    title: Optional[str] = None
    prompt: Optional[str] = None
    hints: list[str] = Field(default_factory=list)

    @field_validator("slug")
    @classmethod
    def _slug_is_kebab_case(cls, value: str) -> str:
        if not KEBAB_CASE_REGEX.match(value):
            raise ValueError(
                "slug must be kebab-case (lowercase letters, numbers, and hyphens)"
            )
        return value

    @field_validator("expected_answer")
    @classmethod
    def _expected_answer_present(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("expected_answer is required")
        return value


def load_exercise(data: dict[str, Any]) -> Exercise:
    """
    Validate a raw content mapping into an Exercise.

    Args:
        data: Mapping as read from a content file

    Returns:
        Validated, immutable Exercise

    Raises:
        ExerciseDefinitionError: If the mapping is not a gradable exercise
    """
    try:
        return Exercise.model_validate(data)
    except ValidationError as e:
        slug = data.get("slug") or "(missing)"
        raise ExerciseDefinitionError(
            f"Invalid exercise {slug}: {e.error_count()} validation error(s)",
            details={
                "slug": slug,
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ],
            },
        ) from e
