"""Filesystem operations interface.

Shell wrapper installation and project discovery touch the disk only through
this interface so tests can run entirely in memory.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class FileSystem(ABC):
    """Abstract interface for the filesystem calls twiggit makes."""

    @abstractmethod
    def read_text(self, path: Path) -> str:
        """Read a whole file as UTF-8 text.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        ...

    @abstractmethod
    def write_text(self, path: Path, content: str) -> None:
        """Replace a file's entire content."""
        ...

    @abstractmethod
    def exists(self, path: Path) -> bool: ...

    @abstractmethod
    def is_dir(self, path: Path) -> bool: ...

    @abstractmethod
    def mkdir(self, path: Path) -> None:
        """Create a directory and any missing parents. Existing directories are fine."""
        ...

    @abstractmethod
    def list_directories(self, path: Path) -> list[Path]:
        """Immediate subdirectories of path, sorted by name."""
        ...


class RealFileSystem(FileSystem):
    """Production implementation backed by pathlib."""

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def write_text(self, path: Path, content: str) -> None:
        path.write_text(content, encoding="utf-8")

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def mkdir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def list_directories(self, path: Path) -> list[Path]:
        if not path.is_dir():
            return []
        return sorted((entry for entry in path.iterdir() if entry.is_dir()), key=lambda p: p.name)
