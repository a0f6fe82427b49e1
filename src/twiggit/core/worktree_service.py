"""Create, delete, prune and list worktrees with safety checks."""

import re
from collections.abc import Callable, Sequence

from twiggit.core.config import TwiggitConfig
from twiggit.core.detection import Context, ContextType
from twiggit.core.errors import (
    GitCommandError,
    GitRepositoryError,
    GitWorktreeError,
    ProjectServiceError,
    ValidationError,
    WorktreeServiceError,
)
from twiggit.core.filesystem import FileSystem
from twiggit.core.git.abc import GitClient, WorktreeInfo, find_worktree_for_path
from twiggit.core.mise import MiseClient, NoopMiseClient, setup_worktree_config
from twiggit.core.paths import is_path_under
from twiggit.core.projects import ProjectRef, discover_projects
from twiggit.core.resolution import ContextResolver, PathType, contains_path_traversal
from twiggit.core.worktree_types import (
    CreateWorktreeRequest,
    CreateWorktreeResult,
    DeleteWorktreeRequest,
    DeleteWorktreeResult,
    PruneItem,
    PruneRequest,
    PruneResult,
    Worktree,
    WorktreeStatus,
    is_protected_branch,
)

# Called once with every worktree a bulk prune is about to remove.
ConfirmCallback = Callable[[Sequence[PruneItem]], bool]

_FORBIDDEN_BRANCH_CHARS = re.compile(r"[\s~^:?*\[\\]")

_GIT_FAILURES = (GitCommandError, GitWorktreeError, GitRepositoryError)


def validate_branch_name(branch: str) -> None:
    """Reject branch names git would refuse or that could escape the worktrees directory.

    Raises:
        ValidationError: If branch is not acceptable
    """
    if not branch.strip():
        raise ValidationError("branch name cannot be empty", field="branch")
    if contains_path_traversal(branch):
        raise ValidationError(
            f"branch name '{branch}' contains '..'", field="branch", value=branch
        )
    if (
        _FORBIDDEN_BRANCH_CHARS.search(branch)
        or branch.startswith(("-", "/"))
        or branch.endswith(("/", ".", ".lock"))
        or "//" in branch
        or "@{" in branch
    ):
        raise ValidationError(f"invalid branch name '{branch}'", field="branch", value=branch)


class WorktreeService:
    """Worktree lifecycle operations.

    Every operation takes a plain request and returns a plain result or raises
    a TwiggitError. Nothing here prints or logs.
    """

    def __init__(
        self,
        config: TwiggitConfig,
        git: GitClient,
        fs: FileSystem,
        resolver: ContextResolver,
        mise: MiseClient | None = None,
    ) -> None:
        self._config = config
        self._git = git
        self._fs = fs
        self._resolver = resolver
        self._mise = mise if mise is not None else NoopMiseClient()

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    def create(self, request: CreateWorktreeRequest) -> CreateWorktreeResult:
        """Add a worktree at ``<worktrees_dir>/<project>/<branch>``.

        Local mise config files in the project root are copied into the new
        worktree. A failure there is reported on the result, not raised.

        Raises:
            ValidationError: If the branch name is invalid
            WorktreeServiceError: If the target exists or git fails
        """
        validate_branch_name(request.branch)
        project_name = request.repo_root.name
        worktree_path = self._config.worktrees_dir / project_name / request.branch

        if self._fs.exists(worktree_path):
            raise WorktreeServiceError(
                "create", worktree_path, "worktree already exists", branch=request.branch
            )

        try:
            branch_existed = self._git.branch_exists(request.repo_root, request.branch)
            base = None
            if not branch_existed:
                base = request.source_branch or self._config.default_source_branch
            self._fs.mkdir(worktree_path.parent)
            self._git.add_worktree(request.repo_root, request.branch, worktree_path, base=base)
        except _GIT_FAILURES as e:
            raise WorktreeServiceError(
                "create", worktree_path, e.message, branch=request.branch
            ) from e

        # The worktree exists from here on, so config setup failures do not undo it.
        copied: list[str] = []
        setup_warning = None
        try:
            copied = setup_worktree_config(self._fs, self._mise, request.repo_root, worktree_path)
        except OSError as e:
            setup_warning = f"could not copy mise config: {e}"
        except WorktreeServiceError as e:
            setup_warning = e.message

        return CreateWorktreeResult(
            worktree_path=worktree_path,
            project_name=project_name,
            branch=request.branch,
            branch_existed=branch_existed,
            copied_config_files=tuple(copied),
            setup_warning=setup_warning,
        )

    # ------------------------------------------------------------------
    # delete
    # ------------------------------------------------------------------

    def delete(self, request: DeleteWorktreeRequest) -> DeleteWorktreeResult:
        """Remove a worktree and, unless keep_branch or protected, its branch.

        A worktree that no longer exists counts as deleted: the result comes
        back with removed=False instead of an error.

        Raises:
            ValidationError: On an unresolvable target, a project root target,
                or uncommitted changes without force
            WorktreeServiceError: If git state cannot be read or removal fails
        """
        resolution = self._resolver.resolve_identifier(request.context, request.identifier)
        if resolution.type == PathType.INVALID:
            raise ValidationError(resolution.explanation, field="identifier",
                                  value=request.identifier)
        if resolution.type == PathType.PROJECT:
            raise ValidationError(
                f"'{request.identifier}' is a project root, not a worktree",
                field="identifier",
                value=request.identifier,
            )

        assert resolution.resolved_path is not None
        worktree_path = resolution.resolved_path
        project_path = self._resolver.project_path(resolution.project_name)

        def result(removed: bool, branch_kept: bool = False) -> DeleteWorktreeResult:
            return DeleteWorktreeResult(
                worktree_path=worktree_path,
                project_name=resolution.project_name,
                branch=resolution.branch_name,
                project_path=project_path,
                removed=removed,
                branch_kept=branch_kept,
            )

        if not self._fs.is_dir(project_path):
            return result(False)

        try:
            worktrees = self._git.list_worktrees(project_path)
        except _GIT_FAILURES as e:
            raise WorktreeServiceError(
                "delete", worktree_path, f"cannot list worktrees: {e.message}"
            ) from e

        target = find_worktree_for_path(worktrees, worktree_path)
        if target is None:
            return result(False)
        if target.is_root:
            raise ValidationError(
                f"'{request.identifier}' is the main worktree of '{resolution.project_name}'",
                field="identifier",
                value=request.identifier,
            )

        # Protected branches outlive their worktree regardless of flags.
        protected = target.branch is not None and is_protected_branch(target.branch)
        keep_branch = request.keep_branch or protected

        try:
            if not request.force and self._git.has_uncommitted_changes(target.path):
                raise ValidationError(
                    f"worktree {target.path} has uncommitted changes (use --force to override)",
                    field="force",
                    value=str(target.path),
                )
            self._git.remove_worktree(target.path, force=request.force, keep_branch=keep_branch)
        except _GIT_FAILURES as e:
            raise WorktreeServiceError(
                "delete", worktree_path, e.message, branch=resolution.branch_name
            ) from e

        return result(True, branch_kept=protected and not request.keep_branch)

    # ------------------------------------------------------------------
    # prune
    # ------------------------------------------------------------------

    def prune(self, request: PruneRequest, confirm: ConfirmCallback | None = None) -> PruneResult:
        """Remove merged worktrees.

        Candidates are classified before anything is removed. Protected and
        unmerged branches are never removed. A bulk prune across all projects
        asks confirm once, unless force or dry_run is set.

        Raises:
            ValidationError: If the request is contradictory or the scope
                cannot be determined
            ProjectServiceError: If a project's worktrees cannot be listed
        """
        if request.all_projects and request.specific_worktree:
            raise ValidationError(
                "cannot use --all with a specific worktree",
                field="specific_worktree",
                value=request.specific_worktree,
            )

        result = PruneResult(dry_run=request.dry_run)
        eligible: list[tuple[ProjectRef, WorktreeInfo]] = []

        for project, candidates in self._prune_scope(request):
            for wt in candidates:
                skip = self._classify(request, project, wt, result)
                if not skip:
                    eligible.append((project, wt))

        needs_confirmation = request.all_projects and not (request.force or request.dry_run)
        if needs_confirmation and eligible:
            if confirm is None:
                raise ValidationError(
                    "pruning all projects requires confirmation (use --force to skip it)",
                    field="all_projects",
                )
            planned = [
                PruneItem(project_name=p.name, worktree_path=wt.path, branch=wt.branch)
                for p, wt in eligible
            ]
            if not confirm(planned):
                result.cancelled = True
                return result

        for project, wt in eligible:
            item = self._prune_one(request, project, wt)
            if item.deleted or request.dry_run:
                result.deleted_worktrees.append(item)
            else:
                result.skipped_worktrees.append(item)

        if request.specific_worktree and not request.dry_run and result.total_deleted == 1:
            project_path = self._resolver.project_path(result.deleted_worktrees[0].project_name)
            if self._fs.exists(project_path):
                result.navigation_path = project_path

        return result

    def _prune_scope(self, request: PruneRequest) -> list[tuple[ProjectRef, list[WorktreeInfo]]]:
        context = request.context

        if request.specific_worktree:
            resolution = self._resolver.resolve_identifier(context, request.specific_worktree)
            if resolution.type != PathType.WORKTREE:
                raise ValidationError(
                    f"'{request.specific_worktree}' does not name a worktree "
                    "(expected project/branch)",
                    field="specific_worktree",
                    value=request.specific_worktree,
                )
            assert resolution.resolved_path is not None
            project = ProjectRef(
                name=resolution.project_name,
                path=self._resolver.project_path(resolution.project_name),
            )
            worktrees = self._list_project_worktrees(project)
            target = find_worktree_for_path(worktrees, resolution.resolved_path)
            if target is None or target.is_root:
                raise ValidationError(
                    f"worktree not found: {request.specific_worktree}",
                    field="specific_worktree",
                    value=request.specific_worktree,
                )
            return [(project, [target])]

        if request.all_projects:
            projects = discover_projects(self._config, self._fs, self._git)
        elif context.type in (ContextType.PROJECT, ContextType.WORKTREE):
            projects = [
                ProjectRef(
                    name=context.project_name,
                    path=self._resolver.project_path(context.project_name),
                )
            ]
        else:
            raise ValidationError(
                "not inside a project or worktree (use --all or name a project/branch)",
                field="context",
                value=context.type.value,
            )

        return [
            (project, [wt for wt in self._list_project_worktrees(project) if not wt.is_root])
            for project in projects
        ]

    def _list_project_worktrees(
        self, project: ProjectRef, operation: str = "prune"
    ) -> list[WorktreeInfo]:
        if not self._fs.is_dir(project.path):
            raise ProjectServiceError(
                operation, project.name, f"project not found at {project.path}"
            )
        try:
            return self._git.list_worktrees(project.path)
        except _GIT_FAILURES as e:
            raise ProjectServiceError(operation, project.name, e.message) from e

    def _classify(
        self,
        request: PruneRequest,
        project: ProjectRef,
        wt: WorktreeInfo,
        result: PruneResult,
    ) -> bool:
        """Record wt in the right skip list. Returns True when it was skipped."""

        def skipped(reason: str, error: Exception | None = None) -> PruneItem:
            return PruneItem(
                project_name=project.name,
                worktree_path=wt.path,
                branch=wt.branch,
                reason=reason,
                error=error,
            )

        if is_path_under(wt.path, request.context.path):
            result.skipped_worktrees.append(skipped("cannot prune current worktree"))
            return True
        if wt.branch is None:
            result.skipped_worktrees.append(skipped("detached HEAD"))
            return True
        if is_protected_branch(wt.branch):
            result.protected_skipped.append(skipped("protected branch"))
            return True

        try:
            merged = self._git.is_branch_merged(project.path, wt.branch)
        except _GIT_FAILURES as e:
            result.skipped_worktrees.append(skipped("failed to check merge status", e))
            return True
        if not merged:
            result.unmerged_skipped.append(skipped("branch not merged"))
            return True

        if not request.force:
            try:
                dirty = self._git.has_uncommitted_changes(wt.path)
            except _GIT_FAILURES as e:
                result.skipped_worktrees.append(skipped("failed to check worktree status", e))
                return True
            if dirty:
                result.skipped_worktrees.append(
                    skipped("uncommitted changes (use --force to override)")
                )
                return True

        return False

    def _prune_one(
        self,
        request: PruneRequest,
        project: ProjectRef,
        wt: WorktreeInfo,
    ) -> PruneItem:
        assert wt.branch is not None
        if request.dry_run:
            return PruneItem(
                project_name=project.name,
                worktree_path=wt.path,
                branch=wt.branch,
                reason="would delete",
            )

        try:
            self._git.remove_worktree(wt.path, force=request.force, keep_branch=True)
        except _GIT_FAILURES as e:
            return PruneItem(
                project_name=project.name,
                worktree_path=wt.path,
                branch=wt.branch,
                reason="failed to remove worktree",
                error=e,
            )

        if not request.delete_branches:
            return PruneItem(
                project_name=project.name, worktree_path=wt.path, branch=wt.branch, deleted=True
            )

        try:
            self._git.delete_branch(project.path, wt.branch, force=False)
        except _GIT_FAILURES as e:
            return PruneItem(
                project_name=project.name,
                worktree_path=wt.path,
                branch=wt.branch,
                deleted=True,
                reason="worktree deleted but branch deletion failed",
                error=e,
            )
        return PruneItem(
            project_name=project.name,
            worktree_path=wt.path,
            branch=wt.branch,
            deleted=True,
            branch_deleted=True,
        )

    # ------------------------------------------------------------------
    # list
    # ------------------------------------------------------------------

    def list_worktrees(self, context: Context, *, all_projects: bool = False) -> list[Worktree]:
        """Snapshot worktrees of the current project, or of every project.

        Raises:
            ValidationError: If not in a project and all_projects is False
            ProjectServiceError: If a project's worktrees cannot be read
        """
        if all_projects:
            projects = discover_projects(self._config, self._fs, self._git)
        elif context.type in (ContextType.PROJECT, ContextType.WORKTREE):
            projects = [
                ProjectRef(
                    name=context.project_name,
                    path=self._resolver.project_path(context.project_name),
                )
            ]
        else:
            raise ValidationError(
                "not inside a project or worktree (use --all)",
                field="context",
                value=context.type.value,
            )

        snapshots: list[Worktree] = []
        for project in projects:
            for wt in self._list_project_worktrees(project, "list"):
                try:
                    dirty = self._git.has_uncommitted_changes(wt.path)
                    last_updated = self._git.get_last_commit_time(wt.path)
                except _GIT_FAILURES as e:
                    raise ProjectServiceError("list", project.name, e.message) from e
                snapshots.append(
                    Worktree(
                        path=wt.path,
                        branch=wt.branch,
                        status=WorktreeStatus.DIRTY if dirty else WorktreeStatus.CLEAN,
                        commit=wt.commit,
                        last_updated=last_updated,
                        project_name=project.name,
                        is_root=wt.is_root,
                    )
                )
        return snapshots

