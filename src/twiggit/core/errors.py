"""Typed errors raised by the twiggit core.

Every error carries an ErrorKind so callers can dispatch with a single match
statement instead of inspecting exception classes:

    match error.kind:
        case ErrorKind.VALIDATION: ...
        case ErrorKind.GIT_COMMAND: ...

The core never logs or formats errors. That is the CLI's job.
"""

from collections.abc import Sequence
from enum import Enum
from pathlib import Path


class ErrorKind(Enum):
    """Closed set of error categories."""

    VALIDATION = "validation"
    WORKTREE_SERVICE = "worktree_service"
    PROJECT_SERVICE = "project_service"
    GIT_REPOSITORY = "git_repository"
    GIT_WORKTREE = "git_worktree"
    GIT_COMMAND = "git_command"
    CONFIG = "config"
    SHELL = "shell"


class TraversalLocation(Enum):
    """Where a path traversal sequence was found."""

    IDENTIFIER = "identifier"
    PROJECT_NAME = "project_name"


class TwiggitError(Exception):
    """Base class for all twiggit errors."""

    _kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> ErrorKind:
        return self._kind


class ValidationError(TwiggitError):
    """Bad, missing, or unsafe input."""

    _kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str = "",
        value: str = "",
        suggestions: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.field = field
        self.value = value
        self.suggestions = tuple(suggestions)


class PathTraversalError(ValidationError):
    """An identifier or project name tried to escape its base directory."""

    def __init__(self, value: str, location: TraversalLocation) -> None:
        match location:
            case TraversalLocation.IDENTIFIER:
                message = f"path traversal detected in identifier: '{value}'"
            case TraversalLocation.PROJECT_NAME:
                message = f"path traversal detected in context project name: '{value}'"
        super().__init__(message, field=location.value, value=value)
        self.location = location


class WorktreeServiceError(TwiggitError):
    """A worktree operation failed against a named worktree."""

    _kind = ErrorKind.WORKTREE_SERVICE

    def __init__(
        self,
        operation: str,
        worktree_path: Path,
        message: str,
        *,
        branch: str | None = None,
    ) -> None:
        super().__init__(f"{operation} failed for worktree {worktree_path}: {message}")
        self.operation = operation
        self.worktree_path = worktree_path
        self.branch = branch
        self.reason = message


class ProjectServiceError(TwiggitError):
    """A project-level operation failed."""

    _kind = ErrorKind.PROJECT_SERVICE

    def __init__(self, operation: str, project_name: str, message: str) -> None:
        super().__init__(f"{operation} failed for project '{project_name}': {message}")
        self.operation = operation
        self.project_name = project_name
        self.reason = message


class GitRepositoryError(TwiggitError):
    """A path is not a usable git repository."""

    _kind = ErrorKind.GIT_REPOSITORY

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"git repository error at {path}: {message}")
        self.path = path
        self.reason = message


class GitWorktreeError(TwiggitError):
    """git refused or failed a worktree operation."""

    _kind = ErrorKind.GIT_WORKTREE

    def __init__(self, worktree_path: Path, message: str, *, branch: str | None = None) -> None:
        super().__init__(f"git worktree error at {worktree_path}: {message}")
        self.worktree_path = worktree_path
        self.branch = branch
        self.reason = message


class GitCommandError(TwiggitError):
    """A git subprocess exited unsuccessfully or could not be started."""

    _kind = ErrorKind.GIT_COMMAND

    def __init__(
        self,
        command: Sequence[str],
        message: str,
        *,
        exit_code: int | None = None,
        stderr: str = "",
    ) -> None:
        detail = f"Failed to {message}\nCommand: {' '.join(command)}"
        if exit_code is not None:
            detail += f"\nExit code: {exit_code}"
        if stderr.strip():
            detail += f"\nstderr: {stderr.strip()}"
        super().__init__(detail)
        self.command = tuple(command)
        self.exit_code = exit_code
        self.stderr = stderr


class ConfigError(TwiggitError):
    """Configuration could not be loaded or is invalid."""

    _kind = ErrorKind.CONFIG

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(message)
        self.path = path


class ShellError(TwiggitError):
    """Shell wrapper installation or shell-type inference failed."""

    _kind = ErrorKind.SHELL

    def __init__(self, message: str, *, config_file: Path | None = None) -> None:
        super().__init__(message)
        self.config_file = config_file
