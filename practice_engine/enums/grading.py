"""
Grading Enums

Defines the grading strategies, fallback reasons, and the target
constructs the coaching pass can detect.
"""

from enum import Enum


class GradingStrategy(str, Enum):
    """
    Correctness strategies used by the grading pipeline.

    - EXACT: normalized string comparison (always available)
    - AST: structural comparison of parsed Python
    - TOKEN: token-stream comparison, ignoring comments and layout
    - EXECUTION: run code through the execution oracle
    """

    EXACT = "exact"
    AST = "ast"
    TOKEN = "token"
    EXECUTION = "execution"


class FallbackReason(str, Enum):
    """Why the pipeline abandoned its primary strategy."""

    INFRA_UNAVAILABLE = "infra_unavailable"  # No oracle, or oracle disabled
    EXECUTION_ERROR = "execution_error"  # Oracle raised, timed out, or broke


class ConstructType(str, Enum):
    """Python idioms an exercise can ask the learner to use."""

    SLICE = "slice"
    COMPREHENSION = "comprehension"
    GENERATOR_EXPR = "generator-expr"
    F_STRING = "f-string"
    TERNARY = "ternary"
    ENUMERATE = "enumerate"
    ZIP = "zip"
    LAMBDA = "lambda"
