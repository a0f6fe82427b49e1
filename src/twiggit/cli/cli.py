import logging
import os

import click

from twiggit.cli.commands.cd import cd_cmd
from twiggit.cli.commands.config import config_group
from twiggit.cli.commands.create import create_cmd
from twiggit.cli.commands.delete import delete_cmd
from twiggit.cli.commands.init import init_cmd
from twiggit.cli.commands.list_cmd import list_cmd
from twiggit.cli.commands.prune import prune_cmd
from twiggit.cli.errors import fail, format_error
from twiggit.core.context import create_context
from twiggit.core.errors import TwiggitError

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


def _configure_logging(verbose: bool) -> None:
    if verbose or os.environ.get("TWIGGIT_DEBUG") == "1":
        logging.basicConfig(
            level=logging.DEBUG,
            format="[DEBUG %(name)s:%(lineno)d] %(message)s",
            force=True,
        )


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="twiggit")
@click.option("-v", "--verbose", is_flag=True, help="Log git commands and decisions to stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Manage git worktrees across projects."""
    _configure_logging(verbose)
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        try:
            ctx.obj = create_context()
        except TwiggitError as e:
            fail(format_error(e))


cli.add_command(cd_cmd)
cli.add_command(config_group)
cli.add_command(create_cmd)
cli.add_command(delete_cmd)
cli.add_command(init_cmd)
cli.add_command(list_cmd)
cli.add_command(prune_cmd)


def main() -> None:
    """CLI entry point used by the `twiggit` console script."""
    cli()
