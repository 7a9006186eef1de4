"""
Grading Telemetry

One structured record per grading call, for tracking strategy usage and
fallback rates. Learner answers are never logged in clear text; only a
SHA-256 prefix is kept, enough to spot repeated submissions.
"""

import hashlib
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from practice_engine.enums.grading import FallbackReason, GradingStrategy

logger = logging.getLogger(__name__)

ANSWER_HASH_LENGTH = 16


@dataclass
class GradingTelemetry:
    exercise_slug: str
    strategy: GradingStrategy
    was_correct: bool
    fallback_used: bool
    user_answer_hash: str
    fallback_reason: Optional[FallbackReason] = None
    matched_alternative: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["strategy"] = GradingStrategy(self.strategy).value
        data["fallback_reason"] = (
            FallbackReason(self.fallback_reason).value if self.fallback_reason else None
        )
        data["timestamp"] = self.timestamp.isoformat()
        return data


def hash_answer(answer: str) -> str:
    """Anonymize an answer as a short SHA-256 hex prefix."""
    return hashlib.sha256(answer.encode("utf-8")).hexdigest()[:ANSWER_HASH_LENGTH]


def create_telemetry_entry(
    exercise_slug: str,
    strategy: GradingStrategy,
    was_correct: bool,
    fallback_used: bool,
    user_answer: str,
    fallback_reason: Optional[FallbackReason] = None,
    matched_alternative: Optional[str] = None,
) -> GradingTelemetry:
    """Create a telemetry entry, hashing the user answer."""
    return GradingTelemetry(
        exercise_slug=exercise_slug,
        strategy=strategy,
        was_correct=was_correct,
        fallback_used=fallback_used,
        user_answer_hash=hash_answer(user_answer),
        fallback_reason=fallback_reason,
        matched_alternative=matched_alternative,
    )


def log_grading_telemetry(telemetry: GradingTelemetry) -> None:
    """Emit a telemetry entry on this module's logger."""
    logger.info(f"Grading telemetry: {telemetry.to_dict()}")
