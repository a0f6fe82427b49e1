"""Path normalization shared by context detection and identifier resolution.

All comparisons between the current directory, repository roots and the
configured projects/worktrees directories go through normalize_path() so the
detector and the resolver always agree on what "under" means.
"""

from pathlib import Path


def normalize_path(path: Path | str) -> Path:
    """Expand ``~``, make absolute, and resolve symlinks and ``.``/``..`` parts."""
    return Path(path).expanduser().resolve()


def is_path_under(base: Path, target: Path) -> bool:
    """Return True if target is base itself or somewhere below it."""
    return normalize_path(target).is_relative_to(normalize_path(base))


def relative_parts(base: Path, target: Path) -> tuple[str, ...] | None:
    """Return target's path components relative to base.

    Returns None when target is not under base. Returns an empty tuple when
    target is base.
    """
    normalized_base = normalize_path(base)
    normalized_target = normalize_path(target)
    if not normalized_target.is_relative_to(normalized_base):
        return None
    return normalized_target.relative_to(normalized_base).parts
