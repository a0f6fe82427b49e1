"""Discover projects under the configured projects directory."""

from dataclasses import dataclass
from pathlib import Path

from twiggit.core.config import TwiggitConfig
from twiggit.core.errors import GitRepositoryError
from twiggit.core.filesystem import FileSystem
from twiggit.core.git.abc import GitClient


@dataclass(frozen=True)
class ProjectRef:
    name: str
    path: Path


def discover_projects(config: TwiggitConfig, fs: FileSystem, git: GitClient) -> list[ProjectRef]:
    """Directories under the projects directory that are git repository roots.

    Directories that fail repository validation are not projects and are left
    out. A missing projects directory yields no projects.
    """
    if not fs.is_dir(config.projects_dir):
        return []

    projects: list[ProjectRef] = []
    for directory in fs.list_directories(config.projects_dir):
        try:
            git.validate_repository(directory)
        except GitRepositoryError:
            continue
        projects.append(ProjectRef(name=directory.name, path=directory))
    return projects
