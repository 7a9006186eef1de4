"""
Learning System Services

Services for spaced repetition scheduling and exercise selection.

Modules:
- fsrs: FSRS memory model backed by the fsrs library
- sm2: Legacy SM-2 memory model
- review_engine: Card lifecycle on top of a memory model
- rating: Rating and legacy quality inference from grading signals
- exercise_selector: Level progression and least-seen exercise selection
- due_set: Session due list management
- attempts: Exercise attempt counters and audit records
- mappers: Persistence row mapping

Usage:
    from practice_engine.services.learning import (
        create_review_engine,
        infer_rating,
        select_exercise,
        DueSetManager,
    )
"""

from practice_engine.services.learning.fsrs import (
    FSRSMemoryModel,
    create_memory_model,
)
from practice_engine.services.learning.sm2 import SM2Config, SM2MemoryModel
from practice_engine.services.learning.review_engine import (
    MemoryModel,
    ReviewEngine,
    create_empty_card,
    create_review_engine,
)
from practice_engine.services.learning.rating import (
    infer_quality,
    infer_rating,
    is_passing_rating,
    quality_to_rating,
    rating_to_quality,
    review_input_from_grading,
)
from practice_engine.services.learning.exercise_selector import (
    get_underrepresented_type,
    map_state_to_phase,
    select_exercise,
    select_exercise_by_type,
)
from practice_engine.services.learning.due_set import (
    DueSetManager,
    get_due_subconcepts,
    get_review_forecast,
)
from practice_engine.services.learning.attempts import build_attempt_record, record_attempt
from practice_engine.services.learning.mappers import (
    attempt_to_row,
    progress_to_row,
    row_to_attempt,
    row_to_progress,
)

__all__ = [
    # Memory models
    "FSRSMemoryModel",
    "create_memory_model",
    "SM2Config",
    "SM2MemoryModel",
    # Review engine
    "MemoryModel",
    "ReviewEngine",
    "create_empty_card",
    "create_review_engine",
    # Rating
    "infer_quality",
    "infer_rating",
    "is_passing_rating",
    "quality_to_rating",
    "rating_to_quality",
    "review_input_from_grading",
    # Selection
    "get_underrepresented_type",
    "map_state_to_phase",
    "select_exercise",
    "select_exercise_by_type",
    # Session
    "DueSetManager",
    "get_due_subconcepts",
    "get_review_forecast",
    "build_attempt_record",
    "record_attempt",
    # Persistence
    "attempt_to_row",
    "progress_to_row",
    "row_to_attempt",
    "row_to_progress",
]
