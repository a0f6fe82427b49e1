"""Fake implementation of GitClient for testing.

This fake enables testing detection, resolution and worktree lifecycle logic
without a git binary or a real repository on disk.
"""

from datetime import datetime
from pathlib import Path

from twiggit.core.errors import GitCommandError, GitRepositoryError, GitWorktreeError
from twiggit.core.git.abc import GitClient, WorktreeInfo
from twiggit.core.paths import is_path_under, normalize_path


class FakeGitClient(GitClient):
    """In-memory fake implementation of git operations.

    Constructor Injection:
    - All state is provided via constructor parameters
    - Mutations (add/remove worktree, delete branch) update internal state
      and are recorded for assertions through read-only properties

    A path is "inside a repository" when it is under one of repo_roots or
    under any registered worktree path.

    Examples:
        >>> git = FakeGitClient(
        ...     repo_roots=[Path("/test/Projects/acme")],
        ...     worktrees={
        ...         Path("/test/Projects/acme"): [
        ...             WorktreeInfo(path=Path("/test/Projects/acme"), branch="main", is_root=True),
        ...         ]
        ...     },
        ... )
        >>> git.get_repository_root(Path("/test/Projects/acme/src"))
        PosixPath('/test/Projects/acme')
    """

    def __init__(
        self,
        *,
        repo_roots: list[Path] | None = None,
        worktrees: dict[Path, list[WorktreeInfo]] | None = None,
        branches: dict[Path, list[str]] | None = None,
        merged_branches: dict[Path, set[str]] | None = None,
        dirty_paths: set[Path] | None = None,
        commit_times: dict[Path, datetime] | None = None,
        repository_root_error: Exception | None = None,
        list_worktrees_error: Exception | None = None,
        merge_check_errors: set[str] | None = None,
        remove_worktree_errors: set[Path] | None = None,
        delete_branch_errors: set[str] | None = None,
    ) -> None:
        """Initialize fake with predetermined repository state.

        Args:
            repo_roots: Main repository roots (also the set validate_repository accepts)
            worktrees: Mapping of repository root to its worktrees, root first
            branches: Mapping of repository root to local branch names
            merged_branches: Mapping of repository root to branches considered merged
            dirty_paths: Worktree paths reporting uncommitted changes
            commit_times: Mapping of worktree path to its last commit time
            repository_root_error: Raised from every get_repository_root() call
            list_worktrees_error: Raised from every list_worktrees() call
            merge_check_errors: Branches whose merge check raises
            remove_worktree_errors: Worktree paths whose removal raises
            delete_branch_errors: Branches whose deletion raises
        """
        self._repo_roots = [normalize_path(p) for p in repo_roots or []]
        self._worktrees = {root: list(wts) for root, wts in (worktrees or {}).items()}
        self._branches = {root: list(names) for root, names in (branches or {}).items()}
        self._merged_branches = merged_branches or {}
        self._dirty_paths = {normalize_path(p) for p in dirty_paths or set()}
        self._commit_times = commit_times or {}
        self._repository_root_error = repository_root_error
        self._list_worktrees_error = list_worktrees_error
        self._merge_check_errors = merge_check_errors or set()
        self._remove_worktree_errors = {normalize_path(p) for p in remove_worktree_errors or set()}
        self._delete_branch_errors = delete_branch_errors or set()

        self._added_worktrees: list[tuple[Path, str, Path, str | None]] = []
        self._removed_worktrees: list[tuple[Path, bool, bool]] = []
        self._deleted_branches: list[str] = []

    def _all_roots(self) -> list[Path]:
        roots = list(self._repo_roots)
        for wts in self._worktrees.values():
            roots.extend(normalize_path(wt.path) for wt in wts)
        return roots

    def get_repository_root(self, path: Path) -> Path | None:
        if self._repository_root_error is not None:
            raise self._repository_root_error
        matches = [root for root in self._all_roots() if is_path_under(root, path)]
        if not matches:
            return None
        return max(matches, key=lambda root: len(root.parts))

    def validate_repository(self, path: Path) -> None:
        if normalize_path(path) not in self._repo_roots:
            raise GitRepositoryError(path, "not a git repository")

    def branch_exists(self, repo_root: Path, branch: str) -> bool:
        return branch in self._branches.get(repo_root, [])

    def list_local_branches(self, repo_root: Path) -> list[str]:
        return list(self._branches.get(repo_root, []))

    def is_branch_merged(self, repo_root: Path, branch: str) -> bool:
        if branch in self._merge_check_errors:
            raise GitCommandError(
                ["git", "branch", "--merged"], f"check merge status of '{branch}'", exit_code=128
            )
        return branch in self._merged_branches.get(repo_root, set())

    def list_worktrees(self, repo_root: Path) -> list[WorktreeInfo]:
        if self._list_worktrees_error is not None:
            raise self._list_worktrees_error
        return list(self._worktrees.get(repo_root, []))

    def add_worktree(self, repo_root: Path, branch: str, path: Path, *, base: str | None) -> None:
        wts = self._worktrees.setdefault(repo_root, [])
        if any(wt.branch == branch for wt in wts):
            raise GitWorktreeError(path, f"'{branch}' is already checked out", branch=branch)
        wts.append(WorktreeInfo(path=path, branch=branch))
        names = self._branches.setdefault(repo_root, [])
        if branch not in names:
            names.append(branch)
        self._added_worktrees.append((repo_root, branch, path, base))

    def remove_worktree(self, path: Path, *, force: bool, keep_branch: bool) -> None:
        target = normalize_path(path)
        if target in self._remove_worktree_errors:
            raise GitWorktreeError(path, "worktree is locked")
        for repo_root, wts in self._worktrees.items():
            for wt in wts:
                if normalize_path(wt.path) == target:
                    wts.remove(wt)
                    self._removed_worktrees.append((path, force, keep_branch))
                    if not keep_branch and wt.branch is not None:
                        self.delete_branch(repo_root, wt.branch, force=force)
                    return
        raise GitWorktreeError(path, "not a working tree")

    def delete_branch(self, repo_root: Path, branch: str, *, force: bool) -> None:
        if branch in self._delete_branch_errors:
            raise GitCommandError(
                ["git", "branch", "-D" if force else "-d", branch],
                f"delete branch '{branch}'",
                exit_code=1,
                stderr=f"error: branch '{branch}' is used elsewhere",
            )
        names = self._branches.get(repo_root, [])
        if branch in names:
            names.remove(branch)
        self._deleted_branches.append(branch)

    def has_uncommitted_changes(self, path: Path) -> bool:
        return normalize_path(path) in self._dirty_paths

    def get_last_commit_time(self, path: Path) -> datetime | None:
        return self._commit_times.get(path)

    @property
    def added_worktrees(self) -> list[tuple[Path, str, Path, str | None]]:
        """(repo_root, branch, path, base) for each add_worktree() call."""
        return list(self._added_worktrees)

    @property
    def removed_worktrees(self) -> list[tuple[Path, bool, bool]]:
        """(path, force, keep_branch) for each successful remove_worktree() call."""
        return list(self._removed_worktrees)

    @property
    def deleted_branches(self) -> list[str]:
        return list(self._deleted_branches)
