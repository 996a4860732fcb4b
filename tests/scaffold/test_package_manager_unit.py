"""Unit tests for the package manager runner.

Tests subprocess execution, output streaming, exit code handling,
timeout enforcement and OS error recovery for PackageManagerRunner.
"""

import asyncio
import sys
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.scaffold.runner.package_manager import (
    STREAM_LIMIT_BYTES,
    InstallResult,
    PackageManagerRunner,
)


def run_async(coro):
    return asyncio.run(coro)


@pytest.fixture
def runner():
    return PackageManagerRunner(command=["yarn", "install"], timeout_seconds=60)


def _make_mock_process(
    returncode: int = 0,
    stdout_lines: Optional[List[bytes]] = None,
    stderr_lines: Optional[List[bytes]] = None,
):
    """Build a mock subprocess with readable stdout/stderr streams."""
    process = AsyncMock()
    process.returncode = returncode
    process.kill = MagicMock()

    stdout_reader = AsyncMock()
    stdout_reader.readline = AsyncMock(side_effect=list(stdout_lines or []) + [b""])
    stderr_reader = AsyncMock()
    stderr_reader.readline = AsyncMock(side_effect=list(stderr_lines or []) + [b""])

    process.stdout = stdout_reader
    process.stderr = stderr_reader
    process.wait = AsyncMock()
    return process


class TestConstruction:

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            PackageManagerRunner(command=[])

    def test_display_command(self, runner):
        assert runner.display_command == "yarn install"


class TestSuccessfulInstall:

    def test_zero_exit_code_returns_success(self, runner, tmp_path):
        process = _make_mock_process(
            returncode=0,
            stdout_lines=[b"[1/4] Resolving packages...\n", b"Done in 3.2s.\n"],
        )
        with patch("asyncio.create_subprocess_exec", return_value=process) as mock_exec:
            result = run_async(runner.run(tmp_path))

        assert isinstance(result, InstallResult)
        assert result.success is True
        assert result.exit_code == 0
        assert result.stdout == "[1/4] Resolving packages...\nDone in 3.2s."
        assert result.stderr == ""
        assert result.duration_seconds >= 0
        assert mock_exec.call_args.args == ("yarn", "install")
        assert mock_exec.call_args.kwargs["cwd"] == str(tmp_path)

    def test_callback_receives_tagged_lines(self, runner, tmp_path):
        process = _make_mock_process(
            stdout_lines=[b"out line\n"], stderr_lines=[b"warning line\n"]
        )
        received: List[str] = []
        with patch("asyncio.create_subprocess_exec", return_value=process):
            run_async(runner.run(tmp_path, log_callback=received.append))
        assert "[stdout] out line" in received
        assert "[stderr] warning line" in received


class TestFailedInstall:

    def test_non_zero_exit_code_returns_failure(self, runner, tmp_path):
        process = _make_mock_process(
            returncode=1, stderr_lines=[b"error An unexpected error occurred\n"]
        )
        with patch("asyncio.create_subprocess_exec", return_value=process):
            result = run_async(runner.run(tmp_path))
        assert result.success is False
        assert result.exit_code == 1
        assert "unexpected error" in result.stderr

    def test_missing_executable_returns_failure(self, runner, tmp_path):
        with patch(
            "asyncio.create_subprocess_exec",
            side_effect=FileNotFoundError("No such file: yarn"),
        ):
            result = run_async(runner.run(tmp_path))
        assert result.success is False
        assert result.exit_code == -1
        assert "Failed to start yarn" in result.stderr

    def test_timeout_kills_process(self, tmp_path):
        runner = PackageManagerRunner(command=["yarn", "install"], timeout_seconds=1)
        process = _make_mock_process()
        with patch("asyncio.create_subprocess_exec", return_value=process), patch(
            "asyncio.wait_for", side_effect=asyncio.TimeoutError()
        ):
            result = run_async(runner.run(tmp_path))
        assert result.success is False
        assert result.exit_code == -1
        assert "timed out after 1s" in result.stderr
        process.kill.assert_called_once()
        process.wait.assert_awaited_once()

    def test_unreadable_output_line_kills_process(self, runner, tmp_path):
        process = _make_mock_process()
        process.stdout.readline = AsyncMock(
            side_effect=ValueError("Separator is not found, and chunk exceed the limit")
        )
        with patch("asyncio.create_subprocess_exec", return_value=process):
            result = run_async(runner.run(tmp_path))
        assert result.success is False
        assert result.exit_code == -1
        assert "Failed to read output of yarn" in result.stderr
        process.kill.assert_called_once()
        process.wait.assert_awaited()


class TestLongOutputLines:

    def test_stream_limit_passed_to_subprocess(self, runner, tmp_path):
        process = _make_mock_process()
        with patch("asyncio.create_subprocess_exec", return_value=process) as mock_exec:
            run_async(runner.run(tmp_path))
        assert mock_exec.call_args.kwargs["limit"] == STREAM_LIMIT_BYTES

    def test_line_longer_than_default_buffer_is_captured(self, tmp_path):
        runner = PackageManagerRunner(
            command=[sys.executable, "-c", "print('x' * 200000)"],
            timeout_seconds=60,
        )
        result = run_async(runner.run(tmp_path))
        assert result.success is True
        assert result.exit_code == 0
        assert result.stdout == "x" * 200000
