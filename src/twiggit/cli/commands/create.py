"""Create a worktree."""

import click

from twiggit.cli.errors import fail, handle_errors
from twiggit.cli.output import machine_output, user_output
from twiggit.core.context import TwiggitContext
from twiggit.core.detection import ContextType
from twiggit.core.resolution import contains_path_traversal, parse_cross_project_reference
from twiggit.core.worktree_types import CreateWorktreeRequest


@click.command("create")
@click.argument("target", metavar="[PROJECT/]BRANCH")
@click.option("--source", "source", help="Branch to start a new branch from.")
@click.option(
    "-C", "--cd", "change_dir", is_flag=True, help="Print the new worktree path for the wrapper."
)
@click.pass_obj
@handle_errors
def create_cmd(ctx: TwiggitContext, target: str, source: str | None, change_dir: bool) -> None:
    """Create a worktree for BRANCH.

    Inside a project or worktree BRANCH belongs to the current project.
    PROJECT/BRANCH names a project under the projects directory. A branch
    that does not exist yet is created from --source (default: the
    configured default source branch).
    """
    context = ctx.detector.detect(ctx.cwd)

    project, branch, is_cross_project = parse_cross_project_reference(target)
    if (
        is_cross_project
        and not contains_path_traversal(project)
        and ctx.fs.is_dir(ctx.resolver.project_path(project))
    ):
        repo_root = ctx.resolver.project_path(project)
    elif context.type in (ContextType.PROJECT, ContextType.WORKTREE):
        repo_root = ctx.resolver.project_path(context.project_name)
        branch = target
    elif is_cross_project:
        fail(f"project '{project}' not found in {ctx.config.projects_dir}")
    else:
        fail("not inside a project or worktree; use PROJECT/BRANCH")

    result = ctx.worktrees.create(
        CreateWorktreeRequest(repo_root=repo_root, branch=branch, source_branch=source)
    )

    origin = "existing branch" if result.branch_existed else "new branch"
    user_output(
        f"Created worktree for {origin} "
        + click.style(result.branch, fg="yellow")
        + f" at {result.worktree_path}"
    )
    if result.copied_config_files:
        user_output(f"Copied {', '.join(result.copied_config_files)} into the new worktree")
    if result.setup_warning is not None:
        user_output(click.style(f"Warning: {result.setup_warning}", fg="yellow"))
    if change_dir:
        machine_output(str(result.worktree_path))
