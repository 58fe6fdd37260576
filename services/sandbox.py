import asyncio
import logging
import os
import subprocess
import tempfile
import time

from core.config import Settings
from core.errors import ExecutionFailed, ExecutionTimeout, ProcessSpawnFailed
from schemas.code import ExecutionResult

log = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124  # Standard Linux timeout exit code


def _child_env(workdir: str) -> dict[str, str]:
    return {
        "PATH": os.environ.get("PATH", ""),
        "HOME": workdir,
        "MPLBACKEND": "Agg",
        "MPLCONFIGDIR": workdir,
        "PYTHONDONTWRITEBYTECODE": "1",
        "PYTHONIOENCODING": "utf-8",
        "OPENBLAS_NUM_THREADS": "1",
        "OMP_NUM_THREADS": "1",
        "MKL_NUM_THREADS": "1",
    }


def _resource_limiter(cpu_seconds: int, memory_mb: int):
    """Build a preexec hook applying rlimits inside the child; None on non-POSIX."""
    if os.name != "posix":
        return None

    def apply_limits() -> None:
        import resource

        def _cap(kind: int, value: int) -> None:
            _, hard = resource.getrlimit(kind)
            if hard != resource.RLIM_INFINITY:
                value = min(value, hard)
            resource.setrlimit(kind, (value, value))

        if cpu_seconds > 0:
            _cap(resource.RLIMIT_CPU, cpu_seconds)
        if memory_mb > 0:
            _cap(resource.RLIMIT_AS, memory_mb * 1024 * 1024)

    return apply_limits


async def run_code(code: str, settings: Settings) -> ExecutionResult:
    """Run `code` in a fresh interpreter and capture everything it writes.

    Each call gets its own process and its own temporary working directory.
    The process is killed when it outlives the configured wall-clock timeout
    or when the awaiting task is cancelled.
    """
    with tempfile.TemporaryDirectory(prefix="mathviz-") as workdir:
        try:
            process = await asyncio.create_subprocess_exec(
                settings.PYTHON_EXECUTABLE,
                "-c",
                code,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=workdir,
                env=_child_env(workdir),
                preexec_fn=_resource_limiter(
                    settings.EXECUTION_CPU_LIMIT_SECONDS,
                    settings.EXECUTION_MEMORY_LIMIT_MB,
                ),
            )
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            log.error(f"Failed to start Python process: {e}")
            raise ProcessSpawnFailed(
                f"Failed to start Python process: {e}",
                details={"executable": settings.PYTHON_EXECUTABLE},
            ) from e

        start_time = time.perf_counter()
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=settings.EXECUTION_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            log.error(
                f"Python process exceeded {settings.EXECUTION_TIMEOUT_SECONDS}s; killing it"
            )
            raise ExecutionTimeout(
                f"Execution timed out after {settings.EXECUTION_TIMEOUT_SECONDS:g} seconds",
                details={
                    "exitCode": TIMEOUT_EXIT_CODE,
                    "timeoutSeconds": settings.EXECUTION_TIMEOUT_SECONDS,
                },
            )
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        execution_time = time.perf_counter() - start_time

    result = ExecutionResult(
        stdout=stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else "",
        stderr=stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else "",
        exit_code=process.returncode,
        execution_time=round(execution_time, 4),
    )
    log.info(
        f"Python process exited with code {result.exit_code} in {result.execution_time}s"
    )
    return result


async def execute_code(code: str, settings: Settings) -> str:
    """Run `code` and return its stdout, raising `ExecutionFailed` on a non-zero exit."""
    result = await run_code(code, settings)

    if result.exit_code != 0:
        log.error(f"Python process stderr: {result.stderr}")
        raise ExecutionFailed(result.exit_code, result.stderr)

    if result.stderr:
        # matplotlib and friends print warnings even on success
        log.warning(f"Python process stderr (but exited 0): {result.stderr}")

    return result.stdout
