"""Unit tests for the git client.

Tests clone and init argument construction, failure mapping, timeout
handling and OS errors with a mocked subprocess.
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.scaffold.errors import GitCommandError
from src.scaffold.vcs.git import GitClient


def run_async(coro):
    return asyncio.run(coro)


def _make_mock_process(returncode=0, stdout=b"", stderr=b""):
    process = AsyncMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.kill = MagicMock()
    process.wait = AsyncMock(return_value=-9)
    return process


@pytest.fixture
def client():
    return GitClient(git_executable="/usr/bin/git", clone_timeout_seconds=5)


class TestClone:

    def test_clone_invokes_git_with_url_and_destination(self, client, tmp_path):
        process = _make_mock_process()
        destination = tmp_path / "my-app"
        with patch("asyncio.create_subprocess_exec", return_value=process) as mock_exec:
            run_async(client.clone("https://example.com/t.git", destination))
        args = mock_exec.call_args.args
        assert args == ("/usr/bin/git", "clone", "https://example.com/t.git", str(destination))
        assert mock_exec.call_args.kwargs["cwd"] is None

    def test_clone_failure_raises_with_stderr(self, client, tmp_path):
        process = _make_mock_process(
            returncode=128, stderr=b"fatal: repository not found\n"
        )
        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(GitCommandError, match="repository not found") as exc_info:
                run_async(client.clone("https://example.com/missing.git", tmp_path / "x"))
        assert exc_info.value.command == "clone"
        assert exc_info.value.returncode == 128
        assert exc_info.value.stderr == "fatal: repository not found"

    def test_clone_timeout_kills_process(self, client, tmp_path):
        process = _make_mock_process()
        process.communicate = AsyncMock(side_effect=asyncio.TimeoutError())
        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(GitCommandError, match="timed out"):
                run_async(client.clone("https://example.com/slow.git", tmp_path / "x"))
        process.kill.assert_called_once()
        process.wait.assert_awaited_once()

    def test_missing_git_raises(self, client, tmp_path):
        with patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError("git")):
            with pytest.raises(GitCommandError, match="Failed to execute git") as exc_info:
                run_async(client.clone("https://example.com/t.git", tmp_path / "x"))
        assert exc_info.value.returncode == -1


class TestInit:

    def test_init_runs_in_destination(self, client, tmp_path):
        process = _make_mock_process(stdout=b"Initialized empty Git repository\n")
        with patch("asyncio.create_subprocess_exec", return_value=process) as mock_exec:
            run_async(client.init(tmp_path))
        assert mock_exec.call_args.args == ("/usr/bin/git", "init")
        assert mock_exec.call_args.kwargs["cwd"] == str(tmp_path)

    def test_init_failure_raises(self, client):
        process = _make_mock_process(returncode=1, stderr=b"permission denied")
        with patch("asyncio.create_subprocess_exec", return_value=process):
            with pytest.raises(GitCommandError, match="permission denied") as exc_info:
                run_async(client.init(Path("/nonexistent")))
        assert exc_info.value.command == "init"
