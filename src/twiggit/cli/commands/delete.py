"""Delete a worktree."""

import click

from twiggit.cli.completions import complete_existing_worktrees
from twiggit.cli.errors import handle_errors
from twiggit.cli.output import machine_output, user_output
from twiggit.core.context import TwiggitContext
from twiggit.core.worktree_types import DeleteWorktreeRequest


@click.command("delete")
@click.argument("target", shell_complete=complete_existing_worktrees)
@click.option("-f", "--force", is_flag=True, help="Delete even with uncommitted changes.")
@click.option("--keep-branch", is_flag=True, help="Keep the worktree's branch.")
@click.option(
    "-C", "--cd", "change_dir", is_flag=True, help="Print the project root for the wrapper."
)
@click.pass_obj
@handle_errors
def delete_cmd(
    ctx: TwiggitContext, target: str, force: bool, keep_branch: bool, change_dir: bool
) -> None:
    """Delete the worktree TARGET and, unless --keep-branch, its branch.

    Protected branches (main, master, develop, staging, production) are
    always kept.

    Deleting a worktree that is already gone succeeds without changes.
    """
    context = ctx.detector.detect(ctx.cwd)
    result = ctx.worktrees.delete(
        DeleteWorktreeRequest(
            context=context, identifier=target, force=force, keep_branch=keep_branch
        )
    )

    if result.removed:
        user_output(f"Deleted worktree {result.worktree_path}")
        if result.branch_kept:
            user_output(f"Kept protected branch {result.branch}")
    else:
        user_output(f"Worktree {result.worktree_path} does not exist, nothing to delete")

    if change_dir:
        machine_output(str(result.project_path))
