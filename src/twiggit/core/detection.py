"""Classify the current working directory relative to projects and worktrees."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from twiggit.core.config import TwiggitConfig
from twiggit.core.errors import ValidationError
from twiggit.core.git.abc import GitClient
from twiggit.core.paths import normalize_path, relative_parts


class ContextType(Enum):
    PROJECT = "project"
    WORKTREE = "worktree"
    OUTSIDE_GIT = "outside_git"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Context:
    """Where the user currently is.

    Created fresh for every command from the working directory and never
    persisted. project_name and branch_name are empty when they do not apply.
    """

    type: ContextType
    path: Path
    project_name: str = ""
    branch_name: str = ""


class ContextDetector:
    """Classify a directory as project, worktree, outside git, or unknown.

    A project is a repository whose root sits directly in the projects
    directory. A worktree is a repository whose root sits at
    ``<worktrees_dir>/<project>/<branch>``, where the branch may itself contain
    slashes.
    """

    def __init__(self, config: TwiggitConfig, git: GitClient) -> None:
        self._config = config
        self._git = git

    def detect(self, cwd: Path | str) -> Context:
        """Classify cwd.

        Raises:
            ValidationError: If cwd is empty
            GitCommandError: If git itself cannot be run
        """
        if isinstance(cwd, str):
            if not cwd.strip():
                raise ValidationError("working directory cannot be empty", field="cwd")
            cwd = Path(cwd)
        path = normalize_path(cwd)

        repo_root = self._git.get_repository_root(path)
        if repo_root is None:
            return Context(type=ContextType.OUTSIDE_GIT, path=path)
        repo_root = normalize_path(repo_root)

        if repo_root.parent == normalize_path(self._config.projects_dir):
            return Context(type=ContextType.PROJECT, path=path, project_name=repo_root.name)

        parts = relative_parts(self._config.worktrees_dir, repo_root)
        if parts is not None and len(parts) >= 2:
            return Context(
                type=ContextType.WORKTREE,
                path=path,
                project_name=parts[0],
                branch_name="/".join(parts[1:]),
            )

        return Context(type=ContextType.UNKNOWN, path=path)
