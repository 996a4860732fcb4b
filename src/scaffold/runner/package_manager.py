"""Package manager subprocess management.

Executes the dependency install command as an async subprocess with
timeout enforcement, output streaming, and structured result capture.
The runner never raises for process failures: a failed install is
reported through the returned InstallResult.
"""

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import structlog

logger = structlog.get_logger(__name__)

INSTALL_TIMEOUT_SECONDS = 1800

# Longest single output line the stream readers accept.
STREAM_LIMIT_BYTES = 16 * 1024 * 1024


@dataclass
class InstallResult:
    """Result of a package manager install.

    Attributes:
        success: True when the install command exited with code 0.
        exit_code: Process exit code (-1 for timeout/OS errors).
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration_seconds: Wall-clock execution time.
    """

    success: bool
    exit_code: int
    stdout: str
    stderr: str
    duration_seconds: float


class PackageManagerRunner:
    """Manages the install command subprocess.

    Launches the install command in the project directory, streams output
    line-by-line to the logger and an optional callback, enforces a
    timeout, and returns a structured result.

    Attributes:
        command: Install command as an argument list (e.g., ["yarn", "install"]).
        timeout_seconds: Maximum execution time before the process is killed.
    """

    def __init__(
        self,
        command: List[str],
        timeout_seconds: int = INSTALL_TIMEOUT_SECONDS,
    ):
        if not command:
            raise ValueError("install command cannot be empty")
        self.command = list(command)
        self.timeout_seconds = timeout_seconds

    @property
    def display_command(self) -> str:
        return " ".join(self.command)

    async def run(
        self,
        cwd: Path,
        log_callback: Optional[Callable[[str], None]] = None,
    ) -> InstallResult:
        """Run the install command in a project directory.

        Args:
            cwd: Project directory to install dependencies in.
            log_callback: Optional function called with each output line.

        Returns:
            InstallResult with exit code, captured output, and duration.
        """
        start_time = time.monotonic()
        process = None

        try:
            process = await self._start_process(cwd)
            stdout, stderr = await self._collect_output_with_timeout(
                process, log_callback
            )
            exit_code = process.returncode or 0
        except asyncio.TimeoutError:
            return await self._handle_timeout(process, start_time)
        except OSError as exc:
            return self._handle_os_error(exc, start_time)
        except ValueError as exc:
            return await self._handle_stream_error(exc, process, start_time)

        duration = time.monotonic() - start_time
        return self._build_result(exit_code, stdout, stderr, duration)

    async def _start_process(self, cwd: Path) -> asyncio.subprocess.Process:
        """Launch the install subprocess.

        Raises:
            OSError: If the executable cannot be found or started.
        """
        logger.info(
            "Starting dependency install",
            command=self.display_command,
            cwd=str(cwd),
            timeout=self.timeout_seconds,
        )

        return await asyncio.create_subprocess_exec(
            *self.command,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_LIMIT_BYTES,
        )

    async def _collect_output_with_timeout(
        self,
        process: asyncio.subprocess.Process,
        log_callback: Optional[Callable[[str], None]],
    ) -> tuple:
        """Stream and collect process output within the timeout window.

        Reads stdout and stderr concurrently and waits for the process
        to exit.

        Returns:
            Tuple of (stdout_text, stderr_text).

        Raises:
            asyncio.TimeoutError: If the process exceeds the timeout.
            ValueError: If an output line exceeds STREAM_LIMIT_BYTES.
        """
        stdout_lines: list[str] = []
        stderr_lines: list[str] = []

        async def stream_stdout():
            async for line in self._read_stream(process.stdout):
                stdout_lines.append(line)
                self._emit_line("stdout", line, log_callback)

        async def stream_stderr():
            async for line in self._read_stream(process.stderr):
                stderr_lines.append(line)
                self._emit_line("stderr", line, log_callback)

        async def gather_streams():
            await asyncio.gather(stream_stdout(), stream_stderr())
            await process.wait()

        await asyncio.wait_for(gather_streams(), timeout=self.timeout_seconds)

        return "\n".join(stdout_lines), "\n".join(stderr_lines)

    async def _read_stream(self, stream: Optional[asyncio.StreamReader]):
        """Yield decoded lines from an async stream."""
        if stream is None:
            return

        while True:
            raw_line = await stream.readline()
            if not raw_line:
                break
            yield raw_line.decode("utf-8", errors="replace").rstrip("\n")

    def _emit_line(
        self,
        stream_name: str,
        line: str,
        log_callback: Optional[Callable[[str], None]],
    ) -> None:
        logger.debug("install output", stream=stream_name, line=line)
        if log_callback is not None:
            log_callback(f"[{stream_name}] {line}")

    async def _kill(self, process: Optional[asyncio.subprocess.Process]) -> None:
        """Kill the process and reap it."""
        if process is None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()

    async def _handle_timeout(
        self,
        process: Optional[asyncio.subprocess.Process],
        start_time: float,
    ) -> InstallResult:
        """Kill the process and return a timeout failure result."""
        await self._kill(process)
        duration = time.monotonic() - start_time
        logger.error(
            "Dependency install timed out",
            command=self.display_command,
            timeout=self.timeout_seconds,
        )
        return InstallResult(
            success=False,
            exit_code=-1,
            stdout="",
            stderr=f"Process timed out after {self.timeout_seconds}s",
            duration_seconds=duration,
        )

    async def _handle_stream_error(
        self,
        exc: ValueError,
        process: Optional[asyncio.subprocess.Process],
        start_time: float,
    ) -> InstallResult:
        """Kill the process when its output cannot be read."""
        await self._kill(process)
        duration = time.monotonic() - start_time
        logger.error(
            "Failed to read install output",
            command=self.display_command,
            error=str(exc),
        )
        return InstallResult(
            success=False,
            exit_code=-1,
            stdout="",
            stderr=f"Failed to read output of {self.command[0]}: {exc}",
            duration_seconds=duration,
        )

    def _handle_os_error(self, exc: OSError, start_time: float) -> InstallResult:
        """Return a failure result for OS-level errors (e.g., missing binary)."""
        duration = time.monotonic() - start_time
        logger.error(
            "Failed to start install command",
            command=self.display_command,
            error=str(exc),
        )
        return InstallResult(
            success=False,
            exit_code=-1,
            stdout="",
            stderr=f"Failed to start {self.command[0]}: {exc}",
            duration_seconds=duration,
        )

    def _build_result(
        self,
        exit_code: int,
        stdout: str,
        stderr: str,
        duration: float,
    ) -> InstallResult:
        """Construct an InstallResult from process output."""
        is_success = exit_code == 0

        if is_success:
            logger.info(
                "Dependency install completed",
                duration_seconds=round(duration, 1),
            )
        else:
            logger.error(
                "Dependency install failed",
                exit_code=exit_code,
                duration_seconds=round(duration, 1),
            )

        return InstallResult(
            success=is_success,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            duration_seconds=duration,
        )
