"""
Exercise Selection

Algorithm-agnostic selection of the next exercise for a subconcept. The
scheduler decides *when* a subconcept is practised; this module decides
*which* exercise from its pool is shown.

Learning phase: level progression (intro -> practice -> edge -> integrated)
    - Pick among unseen exercises at the first level that still has any
    - Move to the next level once every exercise at a level has been seen
    - Fall back to least-seen overall once all levels are exhausted

Review phase: least-seen rotation
    - Pick among the exercises with the lowest times_seen

Anti-repeat: when last_pattern is given, prefer a different pattern among
equally ranked candidates. It never prevents a selection.

Randomness is injected as a zero-argument callable returning a float in
[0, 1), so tests can pass random.Random(seed).random.

Usage:
    from practice_engine.services.learning.exercise_selector import select_exercise

    exercise = select_exercise(
        SubconceptSelectionInfo("slicing", Phase.LEARNING),
        exercises,
        attempts,
        last_pattern="index-access",
    )
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional, Sequence, TypeVar

from practice_engine.config.settings import yaml_config
from practice_engine.enums.learning import ExerciseLevel, ExerciseType, Phase, State
from practice_engine.models.exercise import Exercise
from practice_engine.models.learning import ExerciseAttempt, SubconceptSelectionInfo

logger = logging.getLogger(__name__)

RandomSource = Callable[[], float]
T = TypeVar("T")

_selection_config = yaml_config.get("selection", {})

LEVEL_ORDER: list[ExerciseLevel] = [
    ExerciseLevel(level)
    for level in _selection_config.get(
        "level_order", [level.value for level in ExerciseLevel]
    )
]

DEFAULT_TYPE_RATIOS: dict[ExerciseType, float] = {
    ExerciseType(name): float(ratio)
    for name, ratio in _selection_config.get(
        "type_ratios", {"write": 0.5, "fill-in": 0.25, "predict": 0.25}
    ).items()
}

# A type is only preferred when it lags its target share by more than this
TYPE_DEFICIT_THRESHOLD: float = float(_selection_config.get("deficit_threshold", 0.1))


def map_state_to_phase(state: State) -> Phase:
    """
    Map scheduler state to selection phase.

    New/Learning/Relearning = learning phase (level progression)
    Review = review phase (least-seen selection)
    """
    return Phase.REVIEW if state == State.REVIEW else Phase.LEARNING


def _choose(candidates: Sequence[T], rng: RandomSource) -> T:
    """Uniform choice driven by the injected random source."""
    index = int(rng() * len(candidates))
    # Guard against sources that return exactly 1.0
    return candidates[min(index, len(candidates) - 1)]


def _avoid_pattern(
    candidates: list[Exercise], last_pattern: Optional[str]
) -> list[Exercise]:
    """Prefer candidates with a different pattern; keep all if none differ."""
    if not last_pattern or len(candidates) < 2:
        return candidates
    different = [e for e in candidates if e.pattern != last_pattern]
    return different or candidates


def _times_seen(exercise: Exercise, attempt_map: dict[str, ExerciseAttempt]) -> int:
    attempt = attempt_map.get(exercise.slug)
    return attempt.times_seen if attempt else 0


def select_exercise(
    subconcept_info: SubconceptSelectionInfo,
    exercises: Sequence[Exercise],
    attempts: Sequence[ExerciseAttempt],
    last_pattern: Optional[str] = None,
    rng: RandomSource = random.random,
) -> Optional[Exercise]:
    """
    Select an exercise for a subconcept based on phase and attempt history.

    Args:
        subconcept_info: Subconcept slug and selection phase
        exercises: Candidate exercises (any subconcept; filtered here)
        attempts: Attempt counters for the learner
        last_pattern: Pattern of the previously shown exercise
        rng: Random source returning floats in [0, 1)

    Returns:
        Selected exercise, or None if the subconcept has no exercises
    """
    subconcept_exercises = [
        e for e in exercises if e.subconcept == subconcept_info.subconcept_slug
    ]

    if not subconcept_exercises:
        logger.debug(f"No exercises for subconcept {subconcept_info.subconcept_slug}")
        return None

    attempt_map = {a.exercise_slug: a for a in attempts}

    if Phase(subconcept_info.phase) == Phase.LEARNING:
        return _select_learning_exercise(subconcept_exercises, attempt_map, last_pattern, rng)
    return _get_least_seen_exercise(subconcept_exercises, attempt_map, last_pattern, rng)


def _select_learning_exercise(
    exercises: list[Exercise],
    attempt_map: dict[str, ExerciseAttempt],
    last_pattern: Optional[str],
    rng: RandomSource,
) -> Optional[Exercise]:
    """Level progression: unseen exercises at the first level that has any."""
    for level in LEVEL_ORDER:
        level_exercises = [e for e in exercises if e.level == level]
        if not level_exercises:
            continue

        unseen = [e for e in level_exercises if _times_seen(e, attempt_map) == 0]
        if unseen:
            return _choose(_avoid_pattern(unseen, last_pattern), rng)
        # Every exercise at this level has been seen; move on

    return _get_least_seen_exercise(exercises, attempt_map, last_pattern, rng)


def _get_least_seen_exercise(
    exercises: list[Exercise],
    attempt_map: dict[str, ExerciseAttempt],
    last_pattern: Optional[str],
    rng: RandomSource,
) -> Optional[Exercise]:
    """Lowest times_seen, anti-repeat among ties, then uniform random."""
    if not exercises:
        return None

    min_seen = min(_times_seen(e, attempt_map) for e in exercises)
    least_seen = [e for e in exercises if _times_seen(e, attempt_map) == min_seen]

    return _choose(_avoid_pattern(least_seen, last_pattern), rng)


def get_underrepresented_type(
    session_history: Sequence[ExerciseType],
    target_ratios: Optional[dict[ExerciseType, float]] = None,
) -> Optional[ExerciseType]:
    """
    Determine which exercise type is most underrepresented in the session.

    Args:
        session_history: Types of the exercises shown so far, in order
        target_ratios: Target share per type (defaults to the packaged default.yaml)

    Returns:
        Type with the largest deficit above the threshold, WRITE for an
        empty session, or None when the session is roughly balanced
    """
    if not session_history:
        # Writing code is the core skill; start there
        return ExerciseType.WRITE

    ratios = target_ratios if target_ratios is not None else DEFAULT_TYPE_RATIOS
    total = len(session_history)

    most_underrepresented: Optional[ExerciseType] = None
    max_deficit = 0.0

    for exercise_type, target_ratio in ratios.items():
        exercise_type = ExerciseType(exercise_type)
        actual_ratio = sum(1 for t in session_history if t == exercise_type) / total
        deficit = target_ratio - actual_ratio

        if deficit > max_deficit:
            max_deficit = deficit
            most_underrepresented = exercise_type

    return most_underrepresented if max_deficit > TYPE_DEFICIT_THRESHOLD else None


def select_exercise_by_type(
    exercises: Sequence[Exercise],
    session_history: Sequence[ExerciseType],
    target_ratios: Optional[dict[ExerciseType, float]] = None,
    rng: RandomSource = random.random,
) -> Optional[Exercise]:
    """
    Select an exercise preferring the underrepresented type.

    Falls back to any available exercise if the preferred type has none.
    """
    if not exercises:
        return None

    preferred_type = get_underrepresented_type(session_history, target_ratios)

    if preferred_type is not None:
        preferred = [e for e in exercises if e.exercise_type == preferred_type]
        if preferred:
            return _choose(preferred, rng)

    return _choose(list(exercises), rng)
