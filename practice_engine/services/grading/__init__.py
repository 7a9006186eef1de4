"""
Grading Services

Multi-strategy answer grading with fallback and target-construct coaching.

Modules:
- normalize: Answer normalization for string comparison
- matching: Exact-strategy comparisons per exercise type
- ast_compare: Structural comparison via the ast module
- token_compare: Token-stream comparison via the tokenize module
- constructs: Target construct detection
- execution: Execution oracle protocol and verification helpers
- code_sandbox: Docker-backed execution oracle
- strategies: Strategy resolution per exercise
- pipeline: Two-pass grading orchestration
- telemetry: Anonymized grading telemetry

Usage:
    from practice_engine.services.grading import grade_with_strategy, should_show_coaching

    result = await grade_with_strategy(answer, exercise, oracle)
"""

from practice_engine.services.grading.normalize import normalize_output, normalize_python
from practice_engine.services.grading.matching import (
    check_answer_with_alternatives,
    check_exact,
    check_fill_in_answer,
    check_predict_answer,
)
from practice_engine.services.grading.ast_compare import compare_by_ast
from practice_engine.services.grading.token_compare import compare_by_tokens
from practice_engine.services.grading.constructs import check_any_construct, check_construct
from practice_engine.services.grading.execution import (
    ExecutionOracle,
    verify_predict_answer,
    verify_with_script,
    verify_write_answer,
)
from practice_engine.services.grading.code_sandbox import (
    CodeSandbox,
    SandboxExecutionOracle,
    get_code_sandbox,
)
from practice_engine.services.grading.strategies import resolve_strategy
from practice_engine.services.grading.pipeline import (
    DEFAULT_COACHING_FEEDBACK,
    grade_answer,
    grade_with_strategy,
    should_show_coaching,
)
from practice_engine.services.grading.telemetry import (
    create_telemetry_entry,
    log_grading_telemetry,
)

__all__ = [
    # Normalization and matching
    "normalize_output",
    "normalize_python",
    "check_answer_with_alternatives",
    "check_exact",
    "check_fill_in_answer",
    "check_predict_answer",
    "compare_by_ast",
    "compare_by_tokens",
    # Constructs
    "check_any_construct",
    "check_construct",
    # Execution
    "ExecutionOracle",
    "verify_predict_answer",
    "verify_with_script",
    "verify_write_answer",
    "CodeSandbox",
    "SandboxExecutionOracle",
    "get_code_sandbox",
    # Pipeline
    "resolve_strategy",
    "DEFAULT_COACHING_FEEDBACK",
    "grade_answer",
    "grade_with_strategy",
    "should_show_coaching",
    "create_telemetry_entry",
    "log_grading_telemetry",
]
