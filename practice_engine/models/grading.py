"""
Grading Models

Result types passed between the grading strategies and the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from practice_engine.enums.grading import (
    ConstructType,
    FallbackReason,
    GradingStrategy,
)


@dataclass
class MatchResult:
    """Outcome of a string/structure comparison against expected answers."""

    is_correct: bool
    normalized_user_answer: str
    normalized_expected_answer: str
    matched_alternative: Optional[str] = None


@dataclass
class StrategyResult:
    """
    Outcome of running a single grading strategy.

    infra_available is False only when the strategy could not judge the
    answer at all (no oracle, oracle crashed). A wrong answer is
    infra_available=True, is_correct=False.

    used_ast_match is True only when the answer was accepted on structure
    alone, after the literal comparison failed.
    """

    is_correct: bool
    infra_available: bool
    matched_alternative: Optional[str] = None
    used_ast_match: bool = False
    error: Optional[str] = None
    fallback_reason: Optional[FallbackReason] = None


@dataclass
class StrategyConfig:
    """Primary strategy for an exercise and what to use if it is unavailable."""

    primary: GradingStrategy
    fallback: Optional[GradingStrategy] = None


@dataclass
class ExecutionOutcome:
    """What the execution oracle reports for one run."""

    success: bool
    output: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ConstructCheckResult:
    """Whether a construct was found in an answer."""

    detected: bool
    construct_type: Optional[ConstructType]


@dataclass
class GradingResult:
    """
    Full output of one grading call.

    Attributes:
        is_correct: Final correctness verdict
        grading_method: Strategy that actually decided the verdict
        used_target_construct: True/False, or None when the exercise has no
            target construct or the answer was wrong
        coaching_feedback: Shown when correct without the target construct
        normalized_user_answer: User answer as compared
        normalized_expected_answer: Expected answer as compared
        matched_alternative: Accepted solution that matched, if any
        used_ast_match: Accepted by AST equivalence but not literally; feeds
            ReviewInput.used_ast_match
        infra_available: Whether the primary strategy could run
        fallback_used: Whether the fallback strategy decided the verdict
        fallback_reason: Why the fallback was used
    """

    is_correct: bool
    grading_method: GradingStrategy
    used_target_construct: Optional[bool]
    coaching_feedback: Optional[str]
    normalized_user_answer: str
    normalized_expected_answer: str
    matched_alternative: Optional[str] = None
    used_ast_match: bool = False
    infra_available: bool = True
    fallback_used: bool = False
    fallback_reason: Optional[FallbackReason] = None
