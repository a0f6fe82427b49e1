"""Resolve short identifiers like ``main``, ``feature-x`` or ``acme/feature-x`` to paths.

How an identifier resolves depends on where the user is:

| Context     | "main"            | "token"                        | "project/branch"           |
|-------------|-------------------|--------------------------------|----------------------------|
| project     | project root      | <worktrees>/<project>/<token>  | <worktrees>/project/branch |
| worktree    | project root      | sibling worktree               | <worktrees>/project/branch |
| outside git | -                 | <projects>/<token>             | <worktrees>/project/branch |
| unknown     | invalid           | invalid                        | invalid                    |
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import unquote

from twiggit.core.config import TwiggitConfig
from twiggit.core.detection import Context, ContextType
from twiggit.core.errors import PathTraversalError, TraversalLocation, ValidationError
from twiggit.core.filesystem import FileSystem
from twiggit.core.git.abc import GitClient
from twiggit.core.paths import is_path_under
from twiggit.core.projects import discover_projects

MAIN_ALIAS = "main"


class PathType(Enum):
    PROJECT = "project"
    WORKTREE = "worktree"
    INVALID = "invalid"


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of resolving one identifier.

    resolved_path is None only for INVALID results.
    """

    type: PathType
    resolved_path: Path | None = None
    project_name: str = ""
    branch_name: str = ""
    explanation: str = ""

    def __post_init__(self) -> None:
        if (self.resolved_path is None) != (self.type == PathType.INVALID):
            raise ValueError(f"{self.type.value} result must have a resolved path iff it is valid")


@dataclass(frozen=True)
class ResolutionSuggestion:
    text: str
    description: str
    type: PathType
    project_name: str
    branch_name: str = ""


def parse_cross_project_reference(identifier: str) -> tuple[str, str, bool]:
    """Split ``project/branch`` into its halves.

    Exactly one slash with non-empty halves is the only valid shape. Anything
    else returns ``("", "", False)``.
    """
    parts = identifier.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return "", "", False
    return parts[0], parts[1], True


def contains_path_traversal(value: str) -> bool:
    """Detect ``..`` in literal, percent-encoded, or double percent-encoded form."""
    once = unquote(value)
    twice = unquote(once)
    return any(".." in candidate for candidate in (value, once, twice))


def _is_usable_component(value: str) -> bool:
    return value not in ("", ".") and "\\" not in value


def _invalid(explanation: str) -> ResolutionResult:
    return ResolutionResult(type=PathType.INVALID, explanation=explanation)


class ContextResolver:
    """Turn identifiers into project or worktree paths for a given context."""

    def __init__(self, config: TwiggitConfig, git: GitClient, fs: FileSystem) -> None:
        self._config = config
        self._git = git
        self._fs = fs

    def project_path(self, project_name: str) -> Path:
        return self._config.projects_dir / project_name

    def worktree_path(self, project_name: str, branch: str) -> Path:
        return self._config.worktrees_dir / project_name / branch

    def resolve_identifier(self, context: Context, identifier: str) -> ResolutionResult:
        """Resolve identifier relative to context.

        Returns an INVALID result, without raising, for identifiers that match
        no rule (unknown context, malformed cross-project references, absolute
        paths).

        Raises:
            ValidationError: If identifier is empty
            PathTraversalError: If identifier or the context's project name
                contains a ``..`` sequence
        """
        if not identifier:
            raise ValidationError("identifier cannot be empty", field="identifier")
        if contains_path_traversal(identifier):
            raise PathTraversalError(identifier, TraversalLocation.IDENTIFIER)
        if contains_path_traversal(context.project_name):
            raise PathTraversalError(context.project_name, TraversalLocation.PROJECT_NAME)

        if context.type == ContextType.UNKNOWN:
            return _invalid(
                f"Cannot resolve '{identifier}': current directory is not a known project "
                "or worktree"
            )

        if "/" in identifier:
            return self._resolve_cross_project(identifier)

        if not _is_usable_component(identifier):
            return _invalid(f"'{identifier}' is not a valid project or branch name")

        match context.type:
            case ContextType.PROJECT | ContextType.WORKTREE:
                project = context.project_name
                if identifier == MAIN_ALIAS:
                    path = self.project_path(project)
                    self._ensure_under(self._config.projects_dir, path, identifier)
                    return ResolutionResult(
                        type=PathType.PROJECT,
                        resolved_path=path,
                        project_name=project,
                        explanation=f"Resolved 'main' to root of project '{project}'",
                    )
                path = self.worktree_path(project, identifier)
                self._ensure_under(self._config.worktrees_dir, path, identifier)
                return ResolutionResult(
                    type=PathType.WORKTREE,
                    resolved_path=path,
                    project_name=project,
                    branch_name=identifier,
                    explanation=f"Resolved '{identifier}' to worktree of project '{project}'",
                )
            case ContextType.OUTSIDE_GIT:
                path = self.project_path(identifier)
                self._ensure_under(self._config.projects_dir, path, identifier)
                return ResolutionResult(
                    type=PathType.PROJECT,
                    resolved_path=path,
                    project_name=identifier,
                    explanation=f"Resolved '{identifier}' to project '{identifier}'",
                )

        return _invalid(f"Cannot resolve '{identifier}'")

    def _resolve_cross_project(self, identifier: str) -> ResolutionResult:
        project, branch, ok = parse_cross_project_reference(identifier)
        if not ok or not _is_usable_component(project) or not _is_usable_component(branch):
            return _invalid(
                f"Invalid cross-project reference format: '{identifier}'. Expected: project/branch"
            )
        path = self.worktree_path(project, branch)
        self._ensure_under(self._config.worktrees_dir, path, identifier)
        return ResolutionResult(
            type=PathType.WORKTREE,
            resolved_path=path,
            project_name=project,
            branch_name=branch,
            explanation=f"Resolved '{identifier}' to worktree '{branch}' of project '{project}'",
        )

    def _ensure_under(self, base: Path, path: Path, identifier: str) -> None:
        if not is_path_under(base, path):
            raise ValidationError(
                f"'{identifier}' resolves outside of {base}", field="identifier", value=identifier
            )

    def get_resolution_suggestions(
        self,
        context: Context,
        partial: str,
        *,
        existing_only: bool = False,
    ) -> list[ResolutionSuggestion]:
        """Completion candidates for partial, filtered by case-sensitive prefix.

        Args:
            context: Current context
            partial: Text typed so far; empty returns every candidate
            existing_only: Only offer worktrees that exist on disk, leaving out
                ``main`` and branches without a worktree

        Returns:
            Matching suggestions, possibly empty
        """
        if context.type == ContextType.UNKNOWN:
            return []

        if "/" in partial:
            candidates = self._cross_project_candidates(partial.split("/", 1)[0], existing_only)
        else:
            match context.type:
                case ContextType.PROJECT:
                    candidates = self._project_candidates(
                        context.project_name, include_branches=True, existing_only=existing_only
                    )
                case ContextType.WORKTREE:
                    candidates = self._project_candidates(
                        context.project_name, include_branches=False, existing_only=existing_only
                    )
                case _:
                    candidates = self._outside_git_candidates()

        return [s for s in candidates if s.text.startswith(partial)]

    def _worktree_branches(self, project: str, existing_only: bool) -> list[str]:
        project_root = self.project_path(project)
        if not self._fs.is_dir(project_root):
            return []
        branches: list[str] = []
        for wt in self._git.list_worktrees(project_root):
            if wt.is_root or wt.branch is None:
                continue
            if existing_only and not self._fs.exists(wt.path):
                continue
            branches.append(wt.branch)
        return branches

    def _project_candidates(
        self, project: str, *, include_branches: bool, existing_only: bool
    ) -> list[ResolutionSuggestion]:
        suggestions: list[ResolutionSuggestion] = []
        if not existing_only:
            suggestions.append(
                ResolutionSuggestion(
                    text=MAIN_ALIAS,
                    description="Project root directory",
                    type=PathType.PROJECT,
                    project_name=project,
                )
            )

        worktree_branches = self._worktree_branches(project, existing_only)
        for branch in worktree_branches:
            suggestions.append(
                ResolutionSuggestion(
                    text=branch,
                    description=f"Worktree for branch {branch}",
                    type=PathType.WORKTREE,
                    project_name=project,
                    branch_name=branch,
                )
            )

        project_root = self.project_path(project)
        if include_branches and not existing_only and self._fs.is_dir(project_root):
            taken = set(worktree_branches)
            for branch in self._git.list_local_branches(project_root):
                if branch in taken or branch == MAIN_ALIAS:
                    continue
                suggestions.append(
                    ResolutionSuggestion(
                        text=branch,
                        description=f"Branch {branch} (create worktree)",
                        type=PathType.WORKTREE,
                        project_name=project,
                        branch_name=branch,
                    )
                )
        return suggestions

    def _outside_git_candidates(self) -> list[ResolutionSuggestion]:
        return [
            ResolutionSuggestion(
                text=project.name,
                description="Project directory",
                type=PathType.PROJECT,
                project_name=project.name,
            )
            for project in discover_projects(self._config, self._fs, self._git)
        ]

    def _cross_project_candidates(
        self, project: str, existing_only: bool
    ) -> list[ResolutionSuggestion]:
        if not _is_usable_component(project) or contains_path_traversal(project):
            return []
        return [
            ResolutionSuggestion(
                text=f"{project}/{branch}",
                description=f"Worktree for branch {branch} of {project}",
                type=PathType.WORKTREE,
                project_name=project,
                branch_name=branch,
            )
            for branch in self._worktree_branches(project, existing_only)
        ]
