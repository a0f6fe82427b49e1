"""Git worktree manager for many projects."""
