"""Navigate to a project or worktree."""

import logging

import click

from twiggit.cli.completions import complete_targets
from twiggit.cli.errors import fail, handle_errors
from twiggit.cli.output import machine_output
from twiggit.core.context import TwiggitContext
from twiggit.core.resolution import PathType

logger = logging.getLogger(__name__)


@click.command("cd")
@click.argument("target", shell_complete=complete_targets)
@click.pass_obj
@handle_errors
def cd_cmd(ctx: TwiggitContext, target: str) -> None:
    """Print the path of TARGET so the shell wrapper can cd there.

    \b
    Inside a project or worktree:
      twiggit cd main          # project root
      twiggit cd feature-x     # worktree for feature-x
    Anywhere:
      twiggit cd acme/feature-x
      twiggit cd acme          # project root (outside git only)

    Run 'twiggit init' once to install the shell wrapper.
    """
    context = ctx.detector.detect(ctx.cwd)
    logger.debug("Detected context %s", context)

    result = ctx.resolver.resolve_identifier(context, target)
    if result.type == PathType.INVALID or result.resolved_path is None:
        fail(result.explanation)
    logger.debug(result.explanation)

    if not ctx.fs.is_dir(result.resolved_path):
        hint = ""
        if result.type == PathType.WORKTREE:
            hint = f"\nCreate it with: twiggit create {result.project_name}/{result.branch_name}"
        fail(f"{result.resolved_path} does not exist{hint}")

    machine_output(str(result.resolved_path))
