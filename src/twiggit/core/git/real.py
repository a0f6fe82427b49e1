"""Production GitClient implementation using subprocess."""

import logging
import subprocess
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from twiggit.core.errors import GitCommandError, GitRepositoryError, GitWorktreeError
from twiggit.core.git.abc import GitClient, WorktreeInfo
from twiggit.core.paths import normalize_path

logger = logging.getLogger(__name__)


def run_git(
    args: Sequence[str],
    *,
    operation_context: str,
    cwd: Path,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a git command, wrapping failures with the command and its stderr.

    Args:
        args: Arguments after ``git``
        operation_context: What the command is for, used in error messages
        cwd: Working directory
        check: Raise on a non-zero exit status

    Raises:
        GitCommandError: If git cannot be started, or exits non-zero and check is set
    """
    cmd = ["git", *args]
    logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=False,
        )
    except OSError as e:
        raise GitCommandError(cmd, operation_context, stderr=str(e)) from e

    if check and result.returncode != 0:
        logger.debug("git exited %d: %s", result.returncode, result.stderr.strip())
        raise GitCommandError(
            cmd, operation_context, exit_code=result.returncode, stderr=result.stderr
        )
    return result


def parse_worktree_porcelain(output: str) -> list[WorktreeInfo]:
    """Parse ``git worktree list --porcelain`` output.

    The first entry is marked as the root worktree.
    """
    worktrees: list[WorktreeInfo] = []
    current_path: Path | None = None
    current_branch: str | None = None
    current_commit: str | None = None

    def flush() -> None:
        if current_path is not None:
            worktrees.append(
                WorktreeInfo(
                    path=current_path,
                    branch=current_branch,
                    commit=current_commit,
                    is_root=not worktrees,
                )
            )

    for line in output.splitlines():
        line = line.strip()
        if line.startswith("worktree "):
            flush()
            current_path = Path(line.split(maxsplit=1)[1])
            current_branch = None
            current_commit = None
        elif line.startswith("HEAD ") and current_path is not None:
            current_commit = line.split(maxsplit=1)[1]
        elif line.startswith("branch ") and current_path is not None:
            current_branch = line.split(maxsplit=1)[1].removeprefix("refs/heads/")
        elif line == "":
            flush()
            current_path = None

    flush()
    return worktrees


class RealGitClient(GitClient):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def get_repository_root(self, path: Path) -> Path | None:
        if not path.is_dir():
            return None
        result = run_git(
            ["rev-parse", "--show-toplevel"],
            operation_context="find repository root",
            cwd=path,
            check=False,
        )
        if result.returncode == 0:
            return Path(result.stdout.strip())
        if "not a git repository" in result.stderr or "work tree" in result.stderr:
            return None
        raise GitCommandError(
            ["git", "rev-parse", "--show-toplevel"],
            "find repository root",
            exit_code=result.returncode,
            stderr=result.stderr,
        )

    def validate_repository(self, path: Path) -> None:
        if not path.is_dir():
            raise GitRepositoryError(path, "not a directory")
        root = self.get_repository_root(path)
        if root is None:
            raise GitRepositoryError(path, "not a git repository")
        if normalize_path(root) != normalize_path(path):
            raise GitRepositoryError(path, f"nested inside repository {root}")

    def branch_exists(self, repo_root: Path, branch: str) -> bool:
        result = run_git(
            ["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"],
            operation_context=f"check branch '{branch}'",
            cwd=repo_root,
            check=False,
        )
        return result.returncode == 0

    def list_local_branches(self, repo_root: Path) -> list[str]:
        result = run_git(
            ["branch", "--format=%(refname:short)"],
            operation_context="list local branches",
            cwd=repo_root,
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def is_branch_merged(self, repo_root: Path, branch: str) -> bool:
        result = run_git(
            ["branch", "--merged", "--format=%(refname:short)"],
            operation_context=f"check merge status of '{branch}'",
            cwd=repo_root,
        )
        merged = {line.strip() for line in result.stdout.splitlines()}
        return branch in merged

    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        result = run_git(
            ["worktree", "list", "--porcelain"],
            operation_context="list worktrees",
            cwd=repo_root,
        )
        return parse_worktree_porcelain(result.stdout)

    def add_worktree(self, repo_root: Path, branch: str, path: Path, *, base: str | None) -> None:
        if self.branch_exists(repo_root, branch):
            args = ["worktree", "add", str(path), branch]
        else:
            args = ["worktree", "add", "-b", branch, str(path)]
            if base:
                args.append(base)
        try:
            run_git(args, operation_context=f"add worktree for '{branch}'", cwd=repo_root)
        except GitCommandError as e:
            raise GitWorktreeError(path, e.stderr.strip() or e.message, branch=branch) from e

    def _main_repository_root(self, worktree_path: Path) -> Path:
        result = run_git(
            ["rev-parse", "--path-format=absolute", "--git-common-dir"],
            operation_context="find main repository",
            cwd=worktree_path,
        )
        return Path(result.stdout.strip()).parent

    def _current_branch(self, path: Path) -> str | None:
        result = run_git(
            ["rev-parse", "--abbrev-ref", "HEAD"],
            operation_context="get current branch",
            cwd=path,
            check=False,
        )
        branch = result.stdout.strip()
        if result.returncode != 0 or branch == "HEAD":
            return None
        return branch

    def remove_worktree(self, path: Path, *, force: bool, keep_branch: bool) -> None:
        if not path.is_dir():
            raise GitWorktreeError(path, "worktree directory does not exist")
        try:
            repo_root = self._main_repository_root(path)
        except GitCommandError as e:
            raise GitWorktreeError(path, "not a git worktree") from e

        branch = None if keep_branch else self._current_branch(path)

        args = ["worktree", "remove"]
        if force:
            args.append("--force")
        args.append(str(path))
        try:
            run_git(args, operation_context="remove worktree", cwd=repo_root)
        except GitCommandError as e:
            raise GitWorktreeError(path, e.stderr.strip() or e.message, branch=branch) from e

        if branch is not None:
            try:
                self.delete_branch(repo_root, branch, force=force)
            except GitCommandError as e:
                raise GitWorktreeError(
                    path, f"worktree removed but branch deletion failed: {e.stderr.strip()}",
                    branch=branch,
                ) from e

    def delete_branch(self, repo_root: Path, branch: str, *, force: bool) -> None:
        flag = "-D" if force else "-d"
        run_git(
            ["branch", flag, branch],
            operation_context=f"delete branch '{branch}'",
            cwd=repo_root,
        )

    def has_uncommitted_changes(self, path: Path) -> bool:
        result = run_git(
            ["status", "--porcelain"],
            operation_context="check for uncommitted changes",
            cwd=path,
        )
        return bool(result.stdout.strip())

    def get_last_commit_time(self, path: Path) -> datetime | None:
        result = run_git(
            ["log", "-1", "--format=%ct"],
            operation_context="read last commit time",
            cwd=path,
            check=False,
        )
        timestamp = result.stdout.strip()
        if result.returncode != 0 or not timestamp.isdigit():
            return None
        return datetime.fromtimestamp(int(timestamp), tz=UTC)
