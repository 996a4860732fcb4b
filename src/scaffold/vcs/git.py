"""Git client for template cloning and repository initialization.

Runs git as an async subprocess, captures its output, and raises
GitCommandError on non-zero exit, timeout, or when git cannot start.
"""

import asyncio
from pathlib import Path
from typing import Optional, Tuple

import structlog

from src.scaffold.errors import GitCommandError

logger = structlog.get_logger(__name__)

GIT_CLONE_TIMEOUT_SECONDS = 600
GIT_INIT_TIMEOUT_SECONDS = 60


class GitClient:
    """Thin async wrapper around the git executable.

    Attributes:
        git_executable: Name or path of the git binary.
        clone_timeout_seconds: Maximum time allowed for a clone.
    """

    def __init__(
        self,
        git_executable: str = "git",
        clone_timeout_seconds: int = GIT_CLONE_TIMEOUT_SECONDS,
    ):
        self.git_executable = git_executable
        self.clone_timeout_seconds = clone_timeout_seconds

    async def clone(self, url: str, destination: Path) -> None:
        """Clone a repository with full history into destination.

        Args:
            url: Repository URL or local path to clone.
            destination: Directory to clone into; must be absent or empty.

        Raises:
            GitCommandError: If the clone fails or times out.
        """
        await self._run(
            "clone",
            [url, str(destination)],
            cwd=None,
            timeout=self.clone_timeout_seconds,
        )
        logger.info("Cloned repository", url=url, destination=str(destination))

    async def init(self, destination: Path) -> None:
        """Initialize an empty repository rooted at destination.

        Args:
            destination: Existing directory to initialize.

        Raises:
            GitCommandError: If git init fails.
        """
        await self._run(
            "init",
            [],
            cwd=destination,
            timeout=GIT_INIT_TIMEOUT_SECONDS,
        )
        logger.info("Initialized repository", destination=str(destination))

    async def _run(
        self,
        command: str,
        args: list[str],
        cwd: Optional[Path],
        timeout: int,
    ) -> Tuple[str, str]:
        """Run a git subcommand and return its decoded output.

        Args:
            command: Git subcommand name (e.g., "clone").
            args: Arguments following the subcommand.
            cwd: Working directory, or None for the current one.
            timeout: Seconds to wait before killing the process.

        Returns:
            Tuple of (stdout_text, stderr_text).

        Raises:
            GitCommandError: On non-zero exit, timeout, or OS error.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self.git_executable,
                command,
                *args,
                cwd=str(cwd) if cwd is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise GitCommandError(
                command, -1, f"Failed to execute git: {exc}"
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            raise GitCommandError(
                command, -1, f"git {command} timed out after {timeout}s"
            ) from exc

        stdout_text = stdout.decode("utf-8", errors="replace").strip()
        stderr_text = stderr.decode("utf-8", errors="replace").strip()

        if process.returncode != 0:
            logger.error(
                "git command failed",
                command=command,
                returncode=process.returncode,
                stderr=stderr_text,
            )
            raise GitCommandError(command, process.returncode, stderr_text)

        return stdout_text, stderr_text
