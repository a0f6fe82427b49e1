"""Tests for the subprocess-backed git client that do not need a git binary."""

import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from twiggit.core.errors import GitCommandError
from twiggit.core.git.abc import WorktreeInfo
from twiggit.core.git.real import parse_worktree_porcelain, run_git

PORCELAIN = """\
worktree /test/Projects/acme
HEAD 1111111111111111111111111111111111111111
branch refs/heads/main

worktree /test/Workspaces/acme/feature/login
HEAD 2222222222222222222222222222222222222222
branch refs/heads/feature/login

worktree /test/Workspaces/acme/detached
HEAD 3333333333333333333333333333333333333333
detached

"""


def test_parse_worktree_porcelain() -> None:
    worktrees = parse_worktree_porcelain(PORCELAIN)

    assert worktrees == [
        WorktreeInfo(
            path=Path("/test/Projects/acme"),
            branch="main",
            commit="1" * 40,
            is_root=True,
        ),
        WorktreeInfo(
            path=Path("/test/Workspaces/acme/feature/login"),
            branch="feature/login",
            commit="2" * 40,
        ),
        WorktreeInfo(
            path=Path("/test/Workspaces/acme/detached"),
            branch=None,
            commit="3" * 40,
        ),
    ]
    assert worktrees[2].is_detached


def test_parse_worktree_porcelain_without_trailing_blank_line() -> None:
    worktrees = parse_worktree_porcelain("worktree /r\nHEAD abc\nbranch refs/heads/main")

    assert worktrees == [WorktreeInfo(path=Path("/r"), branch="main", commit="abc", is_root=True)]


def test_parse_empty_output() -> None:
    assert parse_worktree_porcelain("") == []


def test_run_git_returns_completed_process() -> None:
    with patch("twiggit.core.git.real.subprocess.run") as mock_run:
        mock_result = Mock(spec=subprocess.CompletedProcess)
        mock_result.returncode = 0
        mock_result.stdout = "ok"
        mock_result.stderr = ""
        mock_run.return_value = mock_result

        result = run_git(["status"], operation_context="check status", cwd=Path("/repo"))

        assert result.stdout == "ok"
        mock_run.assert_called_once_with(
            ["git", "status"],
            cwd=Path("/repo"),
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=False,
        )


def test_run_git_failure_raises_with_stderr() -> None:
    with patch("twiggit.core.git.real.subprocess.run") as mock_run:
        mock_result = Mock(spec=subprocess.CompletedProcess)
        mock_result.returncode = 128
        mock_result.stdout = ""
        mock_result.stderr = "fatal: not a git repository\n"
        mock_run.return_value = mock_result

        with pytest.raises(GitCommandError) as exc_info:
            run_git(["status"], operation_context="check status", cwd=Path("/repo"))

        assert exc_info.value.exit_code == 128
        assert "not a git repository" in str(exc_info.value)


def test_run_git_without_check_returns_failure() -> None:
    with patch("twiggit.core.git.real.subprocess.run") as mock_run:
        mock_result = Mock(spec=subprocess.CompletedProcess)
        mock_result.returncode = 1
        mock_result.stdout = ""
        mock_result.stderr = ""
        mock_run.return_value = mock_result

        result = run_git(["show-ref"], operation_context="check", cwd=Path("/r"), check=False)

        assert result.returncode == 1


def test_missing_git_binary_is_git_command_error() -> None:
    with patch("twiggit.core.git.real.subprocess.run", side_effect=FileNotFoundError("git")):
        with pytest.raises(GitCommandError):
            run_git(["status"], operation_context="check status", cwd=Path("/repo"))
