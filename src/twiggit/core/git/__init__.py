"""Git operations subpackage.

Provides the GitClient abstraction over git subprocess calls plus the
production implementation.
"""

from twiggit.core.git.abc import GitClient, WorktreeInfo, find_worktree_for_path
from twiggit.core.git.real import RealGitClient

__all__ = ["GitClient", "RealGitClient", "WorktreeInfo", "find_worktree_for_path"]
