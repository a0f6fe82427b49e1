"""Request and result types for worktree lifecycle operations."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from twiggit.core.detection import Context

PROTECTED_BRANCHES: frozenset[str] = frozenset(
    {"main", "master", "develop", "staging", "production"}
)


def is_protected_branch(branch: str) -> bool:
    return branch in PROTECTED_BRANCHES


class WorktreeStatus(Enum):
    CLEAN = "clean"
    DIRTY = "dirty"


@dataclass(frozen=True)
class Worktree:
    """Read-only snapshot of one worktree."""

    path: Path
    branch: str | None
    status: WorktreeStatus
    commit: str | None
    last_updated: datetime | None
    project_name: str = ""
    is_root: bool = False


@dataclass(frozen=True)
class CreateWorktreeRequest:
    repo_root: Path
    branch: str
    source_branch: str | None = None


@dataclass(frozen=True)
class CreateWorktreeResult:
    """Outcome of a create.

    setup_warning is set when the worktree exists but copying local tool
    configuration into it failed.
    """

    worktree_path: Path
    project_name: str
    branch: str
    branch_existed: bool
    copied_config_files: tuple[str, ...] = ()
    setup_warning: str | None = None


@dataclass(frozen=True)
class DeleteWorktreeRequest:
    context: Context
    identifier: str
    force: bool = False
    keep_branch: bool = False


@dataclass(frozen=True)
class DeleteWorktreeResult:
    """Outcome of a delete.

    removed is False when the worktree was already gone. branch_kept is True
    when the branch survived because it is protected and keep_branch was not
    requested.
    """

    worktree_path: Path
    project_name: str
    branch: str
    project_path: Path
    removed: bool
    branch_kept: bool = False


@dataclass(frozen=True)
class PruneRequest:
    context: Context
    force: bool = False
    delete_branches: bool = False
    dry_run: bool = False
    all_projects: bool = False
    specific_worktree: str | None = None


@dataclass(frozen=True)
class PruneItem:
    """What happened to one prune candidate.

    deleted is False for dry runs and skipped candidates. error holds the
    per-item failure, if any, without aborting the rest of the batch.
    """

    project_name: str
    worktree_path: Path
    branch: str | None
    deleted: bool = False
    branch_deleted: bool = False
    reason: str = ""
    error: Exception | None = None


@dataclass
class PruneResult:
    """Partitioned outcome of a prune run."""

    dry_run: bool = False
    cancelled: bool = False
    deleted_worktrees: list[PruneItem] = field(default_factory=list)
    unmerged_skipped: list[PruneItem] = field(default_factory=list)
    protected_skipped: list[PruneItem] = field(default_factory=list)
    skipped_worktrees: list[PruneItem] = field(default_factory=list)
    navigation_path: Path | None = None

    @property
    def total_deleted(self) -> int:
        return len(self.deleted_worktrees)

    @property
    def total_skipped(self) -> int:
        return (
            len(self.unmerged_skipped)
            + len(self.protected_skipped)
            + len(self.skipped_worktrees)
        )

    @property
    def total_branches_deleted(self) -> int:
        return sum(1 for item in self.deleted_worktrees if item.branch_deleted)
