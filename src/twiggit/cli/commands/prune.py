"""Prune merged worktrees."""

from collections.abc import Sequence

import click

from twiggit.cli.completions import complete_existing_worktrees
from twiggit.cli.errors import handle_errors
from twiggit.cli.output import machine_output, user_output
from twiggit.core.context import TwiggitContext
from twiggit.core.worktree_types import PruneItem, PruneRequest, PruneResult


def _describe(item: PruneItem) -> str:
    branch = item.branch if item.branch is not None else "(detached)"
    return f"{item.project_name}/{click.style(branch, fg='yellow')} ({item.worktree_path})"


def _confirm_bulk(items: Sequence[PruneItem]) -> bool:
    user_output(f"About to delete {len(items)} worktree(s):")
    for item in items:
        user_output(f"  {_describe(item)}")
    return click.confirm("Continue?", default=False, err=True)


def _report(result: PruneResult, delete_branches: bool) -> None:
    verb = "Would delete" if result.dry_run else "Deleted"
    for item in result.deleted_worktrees:
        line = f"{verb} {_describe(item)}"
        if item.branch_deleted:
            line += " and its branch"
        user_output(line)
        if item.error is not None:
            user_output(click.style(f"  warning: {item.reason}: {item.error}", fg="yellow"))

    for item in result.protected_skipped:
        user_output(f"Skipped {_describe(item)}: protected branch")
    for item in result.unmerged_skipped:
        user_output(f"Skipped {_describe(item)}: {item.reason}")
    for item in result.skipped_worktrees:
        detail = f": {item.error}" if item.error is not None else ""
        user_output(f"Skipped {_describe(item)}: {item.reason}{detail}")

    summary = f"Summary: {result.total_deleted} deleted, {result.total_skipped} skipped"
    if delete_branches:
        summary += f", {result.total_branches_deleted} branches deleted"
    if result.dry_run:
        summary += " (dry run)"
    user_output(summary)


@click.command("prune")
@click.argument(
    "worktree",
    required=False,
    metavar="[PROJECT/BRANCH]",
    shell_complete=complete_existing_worktrees,
)
@click.option("-a", "--all", "all_projects", is_flag=True, help="Prune across all projects.")
@click.option(
    "-f", "--force", is_flag=True, help="Skip confirmation and prune worktrees with changes."
)
@click.option("--delete-branches", is_flag=True, help="Also delete the pruned branches.")
@click.option("-n", "--dry-run", is_flag=True, help="Show what would be pruned.")
@click.option(
    "-C", "--cd", "change_dir", is_flag=True, help="Print the project root for the wrapper."
)
@click.pass_obj
@handle_errors
def prune_cmd(
    ctx: TwiggitContext,
    worktree: str | None,
    all_projects: bool,
    force: bool,
    delete_branches: bool,
    dry_run: bool,
    change_dir: bool,
) -> None:
    """Delete worktrees whose branches are merged.

    Protected branches (main, master, develop, staging, production) and
    unmerged branches are never pruned. Without arguments, prunes the
    current project.
    """
    context = ctx.detector.detect(ctx.cwd)
    result = ctx.worktrees.prune(
        PruneRequest(
            context=context,
            force=force,
            delete_branches=delete_branches,
            dry_run=dry_run,
            all_projects=all_projects,
            specific_worktree=worktree,
        ),
        confirm=_confirm_bulk,
    )

    if result.cancelled:
        user_output("Prune cancelled.")
        return

    _report(result, delete_branches)

    if change_dir and result.navigation_path is not None:
        machine_output(str(result.navigation_path))
