"""Carry local mise configuration into new worktrees.

Local mise config files are usually untracked, so ``git worktree add`` does not
bring them along. After a worktree is created they are copied over from the
project root and, when the ``mise`` binary is available, the new directory is
trusted so mise does not prompt on first ``cd``.
"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from twiggit.core.errors import WorktreeServiceError
from twiggit.core.filesystem import FileSystem

logger = logging.getLogger(__name__)

MISE_LOCAL_CONFIG_FILES = (".mise.local.toml", "mise/config.local.toml")


class MiseClient(ABC):
    """Narrow interface to the mise binary."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether mise is installed."""
        ...

    @abstractmethod
    def trust(self, path: Path) -> None:
        """Mark path as trusted.

        Raises:
            WorktreeServiceError: If mise cannot be run or rejects the path
        """
        ...


class RealMiseClient(MiseClient):
    """Production implementation shelling out to ``mise``."""

    def __init__(self, exec_path: str = "mise") -> None:
        self._exec_path = exec_path

    def is_available(self) -> bool:
        return shutil.which(self._exec_path) is not None

    def trust(self, path: Path) -> None:
        cmd = [self._exec_path, "trust", str(path)]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, encoding="utf-8", check=False
            )
        except OSError as e:
            raise WorktreeServiceError("mise trust", path, str(e)) from e
        if result.returncode != 0:
            raise WorktreeServiceError(
                "mise trust", path, f"exit code {result.returncode}: {result.stderr.strip()}"
            )


class NoopMiseClient(MiseClient):
    """Stands in when mise integration is not wanted, e.g. in tests."""

    def is_available(self) -> bool:
        return False

    def trust(self, path: Path) -> None:
        return None


def setup_worktree_config(
    fs: FileSystem, mise: MiseClient, source_root: Path, worktree_path: Path
) -> list[str]:
    """Copy local mise config from source_root into worktree_path.

    The directory is trusted only when something was copied and mise is
    installed.

    Returns:
        Relative names of the copied files, in MISE_LOCAL_CONFIG_FILES order

    Raises:
        OSError: If a config file cannot be read or written
        WorktreeServiceError: If ``mise trust`` fails
    """
    copied: list[str] = []
    for name in MISE_LOCAL_CONFIG_FILES:
        source = source_root / name
        if not fs.exists(source):
            continue
        target = worktree_path / name
        fs.mkdir(target.parent)
        fs.write_text(target, fs.read_text(source))
        copied.append(name)

    if copied and mise.is_available():
        mise.trust(worktree_path)
    return copied
