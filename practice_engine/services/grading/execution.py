"""
Execution Oracle Helpers

Execution-based grading talks to an optional oracle that runs Python code
and reports its output. The oracle is an external collaborator; anything
implementing ExecutionOracle can be passed to the pipeline (the Docker
sandbox adapter lives in services.grading.code_sandbox).

Every helper returns a VerificationResult and never raises:
- passed/infra_available=True: the code ran and the output was judged
- infra_available=False: the oracle raised, timed out or reported an
  infrastructure failure, so the pipeline may fall back

A user's code failing (syntax error, assertion, exception) is a judged
answer, not an infrastructure failure.

Usage:
    result = await verify_predict_answer(oracle, exercise.code, user_answer)
    if not result.infra_available:
        ...  # fall back to exact matching
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from practice_engine.config.settings import settings, yaml_config
from practice_engine.models.grading import ExecutionOutcome
from practice_engine.services.grading.normalize import normalize_output

logger = logging.getLogger(__name__)

ANSWER_PLACEHOLDER = "{{answer}}"
DEFAULT_VERIFICATION_TEMPLATE: str = yaml_config.get("grading", {}).get(
    "verification_template", f"print({ANSWER_PLACEHOLDER})"
)

# Oracle errors that mean the infrastructure failed, not the learner's code
INFRA_ERROR_PATTERNS = (
    "Sandbox error",
    "Docker error",
    "Code sandbox is not enabled",
    "Execution timed out",
    "Oracle not ready",
    "NetworkError",
)


@runtime_checkable
class ExecutionOracle(Protocol):
    """
    Runs Python code and reports what it printed.

    expected is the output or assertion the caller is checking for; oracles
    may use it, but the helpers here always compare output themselves.
    """

    async def execute(self, code: str, expected: Optional[str] = None) -> ExecutionOutcome:
        ...


@dataclass
class VerificationResult:
    """Outcome of one execution-based check."""

    passed: bool
    infra_available: bool
    output: Optional[str] = None
    error: Optional[str] = None


def is_oracle_available(oracle: Optional[ExecutionOracle]) -> bool:
    """An oracle is usable if present and not explicitly disabled."""
    return oracle is not None and getattr(oracle, "available", True)


def is_infra_error(error: Optional[str]) -> bool:
    """Check if an oracle error indicates infrastructure failure."""
    if not error:
        return False
    return any(pattern in error for pattern in INFRA_ERROR_PATTERNS)


async def execute_with_timeout(
    oracle: ExecutionOracle,
    code: str,
    expected: Optional[str] = None,
    timeout: Optional[float] = None,
) -> VerificationResult:
    """
    Run code through the oracle, bounded by a timeout.

    Args:
        oracle: Execution oracle
        code: Code to run
        expected: Expected output, forwarded to the oracle
        timeout: Seconds to wait (default: settings.GRADING_EXECUTION_TIMEOUT_SECONDS)

    Returns:
        VerificationResult with passed=success and the captured output
    """
    timeout = timeout if timeout is not None else settings.GRADING_EXECUTION_TIMEOUT_SECONDS

    try:
        outcome = await asyncio.wait_for(oracle.execute(code, expected), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Execution oracle timed out after {timeout}s")
        return VerificationResult(
            passed=False, infra_available=False, error=f"Execution timed out after {timeout}s"
        )
    except Exception as e:
        logger.warning(f"Execution oracle failed: {e}")
        return VerificationResult(passed=False, infra_available=False, error=str(e))

    if not outcome.success and is_infra_error(outcome.error):
        logger.warning(f"Execution oracle reported infrastructure error: {outcome.error}")
        return VerificationResult(
            passed=False, infra_available=False, output=outcome.output, error=outcome.error
        )

    return VerificationResult(
        passed=outcome.success,
        infra_available=True,
        output=outcome.output,
        error=outcome.error,
    )


async def _verify_output(
    oracle: ExecutionOracle,
    code: str,
    expected_output: str,
    timeout: Optional[float],
) -> VerificationResult:
    result = await execute_with_timeout(oracle, code, expected_output, timeout)
    if not result.infra_available or not result.passed:
        return result

    matches = normalize_output(result.output or "") == normalize_output(expected_output)
    return VerificationResult(
        passed=matches, infra_available=True, output=result.output, error=result.error
    )


async def verify_predict_answer(
    oracle: ExecutionOracle,
    code: str,
    user_answer: str,
    timeout: Optional[float] = None,
) -> VerificationResult:
    """
    Verify a predict-output answer by running the exercise code.

    Args:
        oracle: Execution oracle
        code: The exercise snippet whose output is being predicted
        user_answer: The learner's predicted output

    Returns:
        passed=True if the actual output matches the prediction
    """
    return await _verify_output(oracle, code, user_answer, timeout)


async def verify_write_answer(
    oracle: ExecutionOracle,
    user_answer: str,
    expected_output: str,
    verification_template: Optional[str] = None,
    timeout: Optional[float] = None,
) -> VerificationResult:
    """
    Verify a write answer by substituting it into a template and running it.

    Args:
        oracle: Execution oracle
        user_answer: Learner's code
        expected_output: Output the template should print
        verification_template: Template with an {{answer}} placeholder
            (default: print({{answer}}))

    Returns:
        passed=True if the execution output matches expected_output
    """
    template = verification_template or DEFAULT_VERIFICATION_TEMPLATE
    code = template.replace(ANSWER_PLACEHOLDER, user_answer)
    return await _verify_output(oracle, code, expected_output, timeout)


async def verify_with_script(
    oracle: ExecutionOracle,
    user_code: str,
    verification_script: str,
    timeout: Optional[float] = None,
) -> VerificationResult:
    """
    Run a verification script (assertions) after the learner's code.

    The script passes when the combined program exits successfully.
    """
    full_code = f"{user_code}\n\n{verification_script}"
    return await execute_with_timeout(oracle, full_code, None, timeout)
