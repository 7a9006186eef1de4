"""
Learning System Enums

Defines enums for the spaced repetition scheduler, exercise selection,
and the exercise content model.
"""

from enum import Enum


class State(int, Enum):
    """
    Scheduler card states in the learning state machine.

    Integer values are the persisted encoding (subconcept_progress.state).

    State transitions:
    - NEW → LEARNING (first review, any rating)
    - LEARNING → REVIEW (graduated) or LEARNING (still learning)
    - REVIEW → REVIEW (success) or RELEARNING (lapse)
    - RELEARNING → REVIEW (recovered) or RELEARNING (still struggling)
    """

    NEW = 0  # Never reviewed, initial state
    LEARNING = 1  # Being learned, short intervals
    REVIEW = 2  # Graduated, normal spaced intervals
    RELEARNING = 3  # Lapsed and being relearned


class Rating(int, Enum):
    """
    Review ratings, ordered by strength.

    Derived from grading output (see services.learning.rating) and fed to
    the scheduler.
    """

    AGAIN = 1  # Complete failure, reset learning
    HARD = 2  # Significant difficulty, shorter interval
    GOOD = 3  # Correct with reasonable effort, normal interval
    EASY = 4  # Too easy, longer interval


class SchedulerAlgorithm(str, Enum):
    """Memory models available behind the ReviewEngine."""

    FSRS = "fsrs"
    SM2 = "sm2"  # Legacy SuperMemo-2 scheduler


class Phase(str, Enum):
    """
    Exercise selection mode for a subconcept.

    - LEARNING: level progression (New, Learning, Relearning cards)
    - REVIEW: least-seen rotation (Review cards)
    """

    LEARNING = "learning"
    REVIEW = "review"


class ExerciseLevel(str, Enum):
    """Exercise levels, in learning-phase progression order."""

    INTRO = "intro"
    PRACTICE = "practice"
    EDGE = "edge"
    INTEGRATED = "integrated"


class ExerciseType(str, Enum):
    """
    Types of exercises.

    - WRITE: write code from scratch
    - FILL_IN: fill a blank in a code template
    - PREDICT: predict the output of a snippet
    """

    WRITE = "write"
    FILL_IN = "fill-in"
    PREDICT = "predict"
