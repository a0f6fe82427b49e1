"""Show and change configuration."""

import click

from twiggit.cli.errors import fail, handle_errors
from twiggit.cli.output import machine_output, user_output
from twiggit.core.config import CONFIG_KEYS, save_config_value, update_config_value
from twiggit.core.context import TwiggitContext


@click.group("config")
def config_group() -> None:
    """Manage twiggit configuration."""


@config_group.command("show")
@click.pass_obj
def config_show(ctx: TwiggitContext) -> None:
    """Print the effective configuration."""
    source = ctx.config_path if ctx.config_path is not None else "(defaults)"
    user_output(click.style(f"# {source}", dim=True))
    machine_output(f"projects_dir = {ctx.config.projects_dir}")
    machine_output(f"worktrees_dir = {ctx.config.worktrees_dir}")
    machine_output(f"default_source_branch = {ctx.config.default_source_branch}")


@config_group.command("set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("value")
@click.pass_obj
@handle_errors
def config_set(ctx: TwiggitContext, key: str, value: str) -> None:
    """Set KEY to VALUE in the config file.

    Environment variables (TWIGGIT_*) still take precedence over the file.
    """
    if ctx.config_path is None:
        fail("no config file location available")

    updated = update_config_value(ctx.config, key, value, ctx.home)
    new_value = str(getattr(updated, key))
    save_config_value(ctx.config_path, key, new_value)
    user_output(f"Set {key} = {new_value} in {ctx.config_path}")
