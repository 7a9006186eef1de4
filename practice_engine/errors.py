"""
Engine Exceptions

The core recovers locally from everything a learner or a flaky sandbox can
cause (wrong answers, unavailable execution infrastructure, corrupted
progress rows). What remains are programmer errors, raised from this small
hierarchy so callers can tell them apart from library failures.

Usage:
    from practice_engine.errors import ExerciseDefinitionError

    raise ExerciseDefinitionError(
        "expected_answer is required", details={"slug": "print-name"}
    )
"""

from typing import Optional


class ServiceError(Exception):
    """
    Base exception for engine errors.

    Provides consistent error handling with:
    - Error code for categorization
    - Optional details for debugging
    """

    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details


class ExerciseDefinitionError(ServiceError):
    """
    Invalid exercise content.

    Raised when an exercise record cannot be graded at all, e.g. it has no
    expected_answer or its slug is not kebab-case.
    """

    error_code = "exercise_definition_error"


class SchedulerConfigError(ServiceError):
    """
    Invalid scheduler configuration.

    Raised when an unknown scheduler algorithm or out-of-range parameter
    is requested.
    """

    error_code = "scheduler_config_error"
