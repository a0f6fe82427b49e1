"""High-level git operations interface.

Architecture:
- GitClient: Abstract base class defining the interface
- RealGitClient: Production implementation using subprocess
- Fakes under tests/fakes implement the same interface in memory
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from twiggit.core.paths import normalize_path


@dataclass(frozen=True)
class WorktreeInfo:
    """Information about a single git worktree as reported by git."""

    path: Path
    branch: str | None
    commit: str | None = None
    is_root: bool = False

    @property
    def is_detached(self) -> bool:
        return self.branch is None


def find_worktree_for_path(worktrees: list[WorktreeInfo], path: Path) -> WorktreeInfo | None:
    """Find the worktree registered at path, comparing normalized paths."""
    target = normalize_path(path)
    for wt in worktrees:
        if normalize_path(wt.path) == target:
            return wt
    return None


class GitClient(ABC):
    """Abstract interface for git operations.

    This interface contains ONLY runtime operations - no test setup methods.
    """

    @abstractmethod
    def get_repository_root(self, path: Path) -> Path | None:
        """Top-level directory of the working tree containing path.

        Returns:
            The working tree root, or None when path is not inside a git
            repository. Transport failures raise GitCommandError.
        """
        ...

    @abstractmethod
    def validate_repository(self, path: Path) -> None:
        """Check that path is the root of a git repository.

        Raises:
            GitRepositoryError: If it is not
        """
        ...

    @abstractmethod
    def branch_exists(self, repo_root: Path, branch: str) -> bool:
        """Check whether a local branch exists."""
        ...

    @abstractmethod
    def list_local_branches(self, repo_root: Path) -> list[str]:
        """List local branch names."""
        ...

    @abstractmethod
    def is_branch_merged(self, repo_root: Path, branch: str) -> bool:
        """Check whether branch is merged into the repository's checked-out branch."""
        ...

    @abstractmethod
    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        """List all worktrees in the repository. The first one is the root."""
        ...

    @abstractmethod
    def add_worktree(self, repo_root: Path, branch: str, path: Path, *, base: str | None) -> None:
        """Add a worktree for branch at path.

        If the branch does not exist it is created, starting from base when
        given and from HEAD otherwise.
        """
        ...

    @abstractmethod
    def remove_worktree(self, path: Path, *, force: bool, keep_branch: bool) -> None:
        """Remove the worktree at path.

        Args:
            path: Worktree directory
            force: Remove even with uncommitted changes
            keep_branch: Leave the worktree's branch in place
        """
        ...

    @abstractmethod
    def delete_branch(self, repo_root: Path, branch: str, *, force: bool) -> None:
        """Delete a local branch."""
        ...

    @abstractmethod
    def has_uncommitted_changes(self, path: Path) -> bool:
        """Check whether a working tree has staged, unstaged or untracked changes."""
        ...

    @abstractmethod
    def get_last_commit_time(self, path: Path) -> datetime | None:
        """Commit time of HEAD, or None if there are no commits."""
        ...
