"""List worktrees."""

import click

from twiggit.cli.errors import handle_errors
from twiggit.cli.output import user_output
from twiggit.core.context import TwiggitContext
from twiggit.core.worktree_types import Worktree, WorktreeStatus


def _format_row(wt: Worktree) -> str:
    branch = wt.branch if wt.branch is not None else "(detached)"
    name = "main" if wt.is_root else branch
    status = (
        click.style("dirty", fg="red")
        if wt.status == WorktreeStatus.DIRTY
        else click.style("clean", fg="green")
    )
    commit = wt.commit[:7] if wt.commit else "-------"
    updated = wt.last_updated.strftime("%Y-%m-%d %H:%M") if wt.last_updated else "-"
    return f"  {click.style(f'{name:<24}', fg='yellow')} {status}  {commit}  {updated}  {wt.path}"


@click.command("list")
@click.option("-a", "--all", "all_projects", is_flag=True, help="List every project's worktrees.")
@click.pass_obj
@handle_errors
def list_cmd(ctx: TwiggitContext, all_projects: bool) -> None:
    """List worktrees of the current project, or of all projects."""
    context = ctx.detector.detect(ctx.cwd)
    worktrees = ctx.worktrees.list_worktrees(context, all_projects=all_projects)

    if not worktrees:
        user_output("No worktrees found.")
        return

    current_project = None
    for wt in worktrees:
        if wt.project_name != current_project:
            current_project = wt.project_name
            user_output(click.style(current_project, bold=True))
        user_output(_format_row(wt))
