"""Install the shell wrapper."""

import os
from pathlib import Path

import click

from twiggit.cli.errors import fail, handle_errors
from twiggit.cli.output import user_output
from twiggit.core.context import TwiggitContext
from twiggit.core.shell_wrapper import (
    ShellType,
    default_config_file,
    infer_shell_type,
    parse_shell_type,
)


def _resolve_target(
    ctx: TwiggitContext, config_file: str | None, shell: str | None
) -> tuple[Path, ShellType]:
    if config_file is not None:
        path = Path(config_file).expanduser()
        if not path.is_absolute():
            path = ctx.cwd / path
        shell_type = parse_shell_type(shell) if shell else infer_shell_type(path)
        return path, shell_type

    shell_name = shell or os.environ.get("SHELL")
    if not shell_name:
        fail("cannot detect your shell; pass --shell or a config file")
    shell_type = parse_shell_type(shell_name)
    return default_config_file(shell_type, ctx.home, ctx.fs), shell_type


@click.command("init")
@click.argument("config_file", required=False)
@click.option(
    "--shell",
    type=click.Choice([s.value for s in ShellType]),
    help="Shell to generate the wrapper for. Inferred when omitted.",
)
@click.option("--force", is_flag=True, help="Replace an existing wrapper.")
@click.option("--dry-run", is_flag=True, help="Show the wrapper without writing it.")
@click.option("--check", is_flag=True, help="Only report whether the wrapper is installed.")
@click.option("--uninstall", is_flag=True, help="Remove the wrapper.")
@click.pass_obj
@handle_errors
def init_cmd(
    ctx: TwiggitContext,
    config_file: str | None,
    shell: str | None,
    force: bool,
    dry_run: bool,
    check: bool,
    uninstall: bool,
) -> None:
    """Install the twiggit shell wrapper into CONFIG_FILE.

    The wrapper lets 'twiggit cd' and '-C' change your shell's directory.
    Without CONFIG_FILE the usual rc file for your shell is used.
    """
    if check and uninstall:
        fail("--check and --uninstall cannot be combined")

    path, shell_type = _resolve_target(ctx, config_file, shell)
    manager = ctx.shell_wrapper

    if check:
        state = manager.validate_installation(path, shell_type)
        if state.installed:
            user_output(f"Shell wrapper is installed in {path}")
            return
        user_output(f"Shell wrapper is not installed in {path}")
        raise SystemExit(1)

    if uninstall:
        state = manager.uninstall(path, shell_type, dry_run=dry_run)
        if state.skipped:
            user_output(f"Shell wrapper is not installed in {path}")
        elif state.dry_run:
            user_output(f"Would remove the shell wrapper from {path}")
        else:
            user_output(f"Removed the shell wrapper from {path}")
        return

    state = manager.install(path, shell_type, force=force, dry_run=dry_run)
    if state.skipped:
        user_output(f"Shell wrapper already installed in {path} (use --force to reinstall)")
        return
    if state.dry_run:
        user_output(f"Would install this {shell_type.value} wrapper into {path}:\n")
        user_output(state.wrapper_content)
        return

    user_output(f"Installed the {shell_type.value} wrapper into {path}")
    user_output(f"Restart your shell or run: source {path}")
