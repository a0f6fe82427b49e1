"""Application context with dependency injection."""

import os
from dataclasses import dataclass
from pathlib import Path

from twiggit.core.config import (
    TwiggitConfig,
    config_search_paths,
    find_config_file,
    load_config,
)
from twiggit.core.detection import ContextDetector
from twiggit.core.filesystem import FileSystem, RealFileSystem
from twiggit.core.git.abc import GitClient
from twiggit.core.git.real import RealGitClient
from twiggit.core.mise import MiseClient, RealMiseClient
from twiggit.core.resolution import ContextResolver
from twiggit.core.shell_wrapper import ShellWrapperManager
from twiggit.core.worktree_service import WorktreeService


@dataclass(frozen=True)
class TwiggitContext:
    """Immutable context holding all dependencies for twiggit operations.

    Created once at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.

    Services are built on demand from the injected collaborators so tests only
    have to supply fakes for git and the filesystem.
    """

    git: GitClient
    fs: FileSystem
    config: TwiggitConfig
    cwd: Path
    home: Path
    config_path: Path | None = None
    mise: MiseClient | None = None

    @property
    def detector(self) -> ContextDetector:
        return ContextDetector(self.config, self.git)

    @property
    def resolver(self) -> ContextResolver:
        return ContextResolver(self.config, self.git, self.fs)

    @property
    def worktrees(self) -> WorktreeService:
        return WorktreeService(self.config, self.git, self.fs, self.resolver, self.mise)

    @property
    def shell_wrapper(self) -> ShellWrapperManager:
        return ShellWrapperManager(self.fs)

    @staticmethod
    def for_test(
        *,
        git: GitClient,
        fs: FileSystem,
        config: TwiggitConfig | None = None,
        cwd: Path | None = None,
        home: Path | None = None,
        config_path: Path | None = None,
        mise: MiseClient | None = None,
    ) -> "TwiggitContext":
        """Create a context with test-friendly defaults.

        Args:
            git: Fake git client
            fs: Fake filesystem
            config: Defaults to /test/Projects and /test/Workspaces
            cwd: Defaults to /test
            home: Defaults to /test/home
            config_path: Config file used by ``config set``
            mise: mise client; None disables mise integration
        """
        if config is None:
            config = TwiggitConfig(
                projects_dir=Path("/test/Projects"),
                worktrees_dir=Path("/test/Workspaces"),
            )
        return TwiggitContext(
            git=git,
            fs=fs,
            config=config,
            cwd=cwd if cwd is not None else Path("/test"),
            home=home if home is not None else Path("/test/home"),
            config_path=config_path,
            mise=mise,
        )


def create_context() -> TwiggitContext:
    """Create production context with real implementations.

    Raises:
        ConfigError: If the configuration cannot be loaded
    """
    home = Path.home()
    config_path = find_config_file(os.environ, home)
    if config_path is None:
        config_path = config_search_paths(os.environ, home)[0]
    config = load_config(home=home)
    try:
        cwd = Path.cwd()
    except FileNotFoundError:
        # The current directory was removed, typically by deleting the worktree we were in.
        cwd = home
    return TwiggitContext(
        git=RealGitClient(),
        fs=RealFileSystem(),
        config=config,
        cwd=cwd,
        home=home,
        config_path=config_path,
        mise=RealMiseClient(),
    )
