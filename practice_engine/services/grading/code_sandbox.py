"""
Docker Code Sandbox

Docker-backed execution oracle for execution-strategy grading. Learner
code runs in a throwaway container with strict limits:
- Memory limit, no swap
- CPU quota
- Network disabled
- Read-only filesystem (except /tmp)
- Non-root user, no capabilities
- Process limit and wall-clock timeout

The sandbox is optional. When Docker is unreachable it disables itself and
SandboxExecutionOracle reports unavailable, so the grading pipeline falls
back to exact matching.

Usage:
    from practice_engine.services.grading.code_sandbox import SandboxExecutionOracle

    oracle = SandboxExecutionOracle()
    result = await grade_with_strategy(answer, exercise, oracle)
"""

import asyncio
import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import docker
from docker.errors import APIError, ContainerError, ImageNotFound

from practice_engine.config.settings import settings
from practice_engine.models.grading import ExecutionOutcome

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Raw result of one container run."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    timed_out: bool = False
    error: Optional[str] = None


PYTHON_IMAGE = "python:3.11-slim"
CODE_FILENAME = "answer.py"


class CodeSandbox:
    """
    Docker sandbox running a single Python file per call.

    Security features:
    - Memory limit (128MB)
    - CPU quota (50% of one core)
    - Network disabled
    - Read-only filesystem (except /tmp)
    - Non-root user
    - Process limit (50 max)
    - Execution timeout (10s)
    """

    DEFAULT_TIMEOUT = 10  # seconds
    MEMORY_LIMIT = "128m"
    CPU_QUOTA = 50000  # 50% of one core
    MAX_PIDS = 50

    def __init__(
        self,
        timeout: Optional[int] = None,
        enabled: bool = True,
        image: str = PYTHON_IMAGE,
    ):
        """
        Initialize code sandbox.

        Args:
            timeout: Container wall-clock timeout in seconds
            enabled: Whether the sandbox should try to use Docker at all
            image: Python image used for every run
        """
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.enabled = enabled
        self.image = image
        self.docker_client: Optional[docker.DockerClient] = None

        if self.enabled:
            try:
                self.docker_client = docker.from_env()
                self.docker_client.ping()
                logger.info("Docker sandbox initialized successfully")
            except Exception as e:
                logger.warning(f"Docker not available, execution grading disabled: {e}")
                self.enabled = False

    async def execute_code(self, code: str, timeout: Optional[int] = None) -> ExecutionResult:
        """
        Execute Python code in the sandbox.

        Args:
            code: Python source to run
            timeout: Optional timeout override

        Returns:
            Execution result with stdout and stderr captured separately
        """
        if not self.enabled:
            return ExecutionResult(success=False, error="Code sandbox is not enabled")

        temp_dir = tempfile.mkdtemp(prefix="sandbox_")

        try:
            code_file = Path(temp_dir) / CODE_FILENAME
            code_file.write_text(code)

            return await self._run_container(
                command=["python3", f"/code/{CODE_FILENAME}"],
                code_dir=temp_dir,
                timeout=timeout or self.timeout,
            )

        finally:
            try:
                shutil.rmtree(temp_dir)
            except OSError as e:
                logger.warning(f"Failed to clean up temp dir: {e}")

    def _create_container(self, command: list[str], code_dir: str):
        """Pull the image if needed and create a locked-down container."""
        try:
            self.docker_client.images.get(self.image)
        except ImageNotFound:
            logger.info(f"Pulling image {self.image}...")
            self.docker_client.images.pull(self.image)

        return self.docker_client.containers.create(
            image=self.image,
            command=command,
            volumes={code_dir: {"bind": "/code", "mode": "ro"}},
            working_dir="/code",
            mem_limit=self.MEMORY_LIMIT,
            memswap_limit=self.MEMORY_LIMIT,
            cpu_quota=self.CPU_QUOTA,
            network_disabled=True,
            read_only=True,
            pids_limit=self.MAX_PIDS,
            cap_drop=["ALL"],
            security_opt=["no-new-privileges"],
            tmpfs={"/tmp": "size=10m,mode=1777"},
            user="nobody",
        )

    @staticmethod
    def _read_logs(container) -> tuple[str, str]:
        stdout = container.logs(stdout=True, stderr=False).decode("utf-8", errors="replace")
        stderr = container.logs(stdout=False, stderr=True).decode("utf-8", errors="replace")
        return stdout, stderr

    @staticmethod
    def _kill(container) -> None:
        try:
            container.kill()
        except Exception as e:
            logger.warning(f"Failed to kill timed out container: {e}")

    @staticmethod
    def _remove(container) -> None:
        try:
            container.remove(force=True)
        except Exception as e:
            logger.warning(f"Failed to remove container: {e}")

    async def _run_container(
        self,
        command: list[str],
        code_dir: str,
        timeout: int,
    ) -> ExecutionResult:
        """
        Run a command in a locked-down container.

        Every Docker call blocks, so each one runs in the default executor
        and the event loop stays free for the caller's own timeout.

        Args:
            command: Command to execute
            code_dir: Host directory mounted read-only at /code
            timeout: Execution timeout in seconds

        Returns:
            Execution result
        """
        loop = asyncio.get_running_loop()
        container = None

        try:
            container = await loop.run_in_executor(
                None, lambda: self._create_container(command, code_dir)
            )
            await loop.run_in_executor(None, container.start)

            try:
                result = await asyncio.wait_for(
                    loop.run_in_executor(None, container.wait),
                    timeout=timeout,
                )
                exit_code = result.get("StatusCode", 1)
                timed_out = False
            except asyncio.TimeoutError:
                await loop.run_in_executor(None, self._kill, container)
                exit_code = -1
                timed_out = True

            stdout, stderr = await loop.run_in_executor(None, self._read_logs, container)

            return ExecutionResult(
                success=exit_code == 0 and not timed_out,
                stdout=stdout,
                stderr=stderr,
                exit_code=exit_code,
                timed_out=timed_out,
            )

        except ContainerError as e:
            return ExecutionResult(
                success=False,
                stderr=str(e.stderr) if e.stderr else "",
                exit_code=e.exit_status,
            )
        except APIError as e:
            logger.error(f"Docker API error: {e}")
            return ExecutionResult(success=False, error=f"Docker error: {e}")
        except Exception as e:
            logger.error(f"Sandbox execution error: {e}")
            return ExecutionResult(success=False, error=f"Sandbox error: {e}")
        finally:
            if container:
                await loop.run_in_executor(None, self._remove, container)


class SandboxExecutionOracle:
    """
    ExecutionOracle backed by a CodeSandbox.

    Sandbox infrastructure failures come back as errors matching
    execution.INFRA_ERROR_PATTERNS; failures of the learner's code come back
    with their stderr.
    """

    def __init__(self, sandbox: Optional[CodeSandbox] = None):
        self.sandbox = sandbox or get_code_sandbox()

    @property
    def available(self) -> bool:
        return self.sandbox.enabled

    async def execute(self, code: str, expected: Optional[str] = None) -> ExecutionOutcome:
        result = await self.sandbox.execute_code(code)

        if result.timed_out:
            return ExecutionOutcome(success=False, output=result.stdout, error="Execution timed out")

        if result.error:
            return ExecutionOutcome(success=False, error=result.error)

        if not result.success:
            return ExecutionOutcome(
                success=False,
                output=result.stdout,
                error=result.stderr or f"Process exited with code {result.exit_code}",
            )

        return ExecutionOutcome(success=True, output=result.stdout)


# Singleton instance
_sandbox_instance: Optional[CodeSandbox] = None


def get_code_sandbox() -> CodeSandbox:
    """Get or create the code sandbox singleton."""
    global _sandbox_instance

    if _sandbox_instance is None:
        _sandbox_instance = CodeSandbox(
            timeout=settings.SANDBOX_TIMEOUT_SECONDS,
            enabled=settings.SANDBOX_ENABLED,
        )

    return _sandbox_instance
