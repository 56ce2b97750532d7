"""
Execution Engine

Runs a tool executable with a rendered argument vector and captures what it
did. The executable is spawned directly, never through a shell. stdout and
stderr are read through separate pipes; stdin is /dev/null.

Ordinary process failures (non-zero exit, death by signal, timeout, failure
to start) are reported in the returned ExecutionResult rather than raised.
The child runs in its own session. When the call ends, whether by exit,
timeout or cancellation, its whole process group is killed, the child is
reaped and its pipes are closed before execute() returns.
"""

import asyncio
import logging
import os
import signal
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Mapping, Optional, Sequence

from mcp_serve.models.domain import (
    ExecutionConfig,
    ExecutionResult,
    ExitKind,
    ExitStatus,
)

logger = logging.getLogger(__name__)


def build_environment(
    config: ExecutionConfig, host_env: Optional[Mapping[str, str]] = None
) -> dict[str, str]:
    """
    Build the child's environment.

    With inherit_env off (the default) only allow-listed host variables are
    copied, so host secrets are not handed to arbitrary scripts. extra_env is
    applied last and wins over both.

    Args:
        config: Execution policy.
        host_env: Source environment (default: os.environ).

    Returns:
        The environment mapping for the child process.
    """
    source = os.environ if host_env is None else host_env
    if config.inherit_env:
        env = dict(source)
    else:
        env = {name: source[name] for name in config.env_allowlist if name in source}
    env.update(config.extra_env)
    return env


# How often a running child is checked for exit.
_EXIT_POLL_INTERVAL = 0.01

# Minimum time allowed to drain the pipes once the child has exited.
_DRAIN_GRACE_SECONDS = 1.0


def _kill_group(process: asyncio.subprocess.Process) -> None:
    """
    SIGKILL the child's process group (or the child alone where unsupported).

    The child leads its own session, so the group outlives it for as long as
    anything it started is still running.
    """
    try:
        if hasattr(os, "killpg"):
            os.killpg(process.pid, signal.SIGKILL)
        elif process.returncode is None:
            process.kill()
    except ProcessLookupError:
        pass


async def _wait_for_exit(process: asyncio.subprocess.Process) -> int:
    """
    Wait for the child itself to exit.

    Process.wait() also waits for the pipes to close, which never happens
    while a background descendant still holds them.
    """
    while process.returncode is None:
        await asyncio.sleep(_EXIT_POLL_INTERVAL)
    return process.returncode


@asynccontextmanager
async def spawned_process(
    executable_path: Path,
    argv: Sequence[str],
    config: ExecutionConfig,
) -> AsyncIterator[asyncio.subprocess.Process]:
    """
    Spawn a child and guarantee that it and everything in its process group
    is killed, that the child is reaped and that its pipes are closed on
    every exit path.

    Raises:
        OSError: The executable could not be started.
    """
    process = await asyncio.create_subprocess_exec(
        str(executable_path),
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(config.cwd) if config.cwd else None,
        env=build_environment(config),
        start_new_session=hasattr(os, "killpg"),
    )
    try:
        yield process
    finally:
        _kill_group(process)
        await _wait_for_exit(process)
        # No public API closes the pipe transports once the child is gone.
        process._transport.close()


class ProcessExecutor:
    """
    Runs tool executables under an ExecutionConfig.

    The executor holds no per-call state; one instance serves any number of
    concurrent invocations.

    Example:
        >>> executor = ProcessExecutor()
        >>> result = await executor.execute(Path("/opt/tools/echo"), ["hi"], ExecutionConfig(timeout=5))
        >>> result.exit_status.success
        True
    """

    async def execute(
        self,
        executable_path: Path,
        argv: Sequence[str],
        config: ExecutionConfig,
    ) -> ExecutionResult:
        """
        Run the executable and capture its result.

        The call ends when the executable exits. Anything it left running in
        its process group is killed at that point, so the pipes reach EOF
        and the output written so far is returned.

        Args:
            executable_path: Program to run.
            argv: Arguments, each passed as one atomic argument.
            config: Environment, working directory and timeout policy.

        Returns:
            ExecutionResult with exit status, captured output and duration.

        Raises:
            asyncio.CancelledError: The caller was cancelled; the child has
                already been killed and reaped.
        """
        loop = asyncio.get_running_loop()
        start_time = time.monotonic()

        def elapsed_ms() -> float:
            return (time.monotonic() - start_time) * 1000

        try:
            async with spawned_process(executable_path, argv, config) as process:
                deadline = loop.time() + config.timeout
                reader = asyncio.ensure_future(process.communicate())
                try:
                    await asyncio.wait_for(_wait_for_exit(process), timeout=config.timeout)
                    _kill_group(process)
                    stdout, stderr = await asyncio.wait_for(
                        reader, timeout=max(deadline - loop.time(), _DRAIN_GRACE_SECONDS)
                    )
                except asyncio.TimeoutError:
                    logger.warning(
                        f"Process {executable_path} timed out after {config.timeout}s"
                    )
                    return ExecutionResult(
                        exit_status=ExitStatus(kind=ExitKind.TIMED_OUT),
                        stderr=f"Timed out after {config.timeout}s".encode(),
                        duration_ms=elapsed_ms(),
                    )
                finally:
                    reader.cancel()
        except OSError as e:
            logger.warning(f"Failed to start {executable_path}: {e}")
            return ExecutionResult(
                exit_status=ExitStatus(kind=ExitKind.SPAWN_FAILED),
                stderr=str(e).encode(),
                duration_ms=elapsed_ms(),
            )

        returncode = process.returncode
        if returncode is not None and returncode < 0:
            exit_status = ExitStatus(kind=ExitKind.SIGNALED, signal=-returncode)
        else:
            exit_status = ExitStatus(kind=ExitKind.EXITED, code=returncode)

        return ExecutionResult(
            exit_status=exit_status,
            stdout=stdout,
            stderr=stderr,
            duration_ms=elapsed_ms(),
        )
