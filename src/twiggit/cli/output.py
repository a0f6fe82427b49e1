"""Output helpers separating human messages from machine-readable results.

Human-facing text goes to stderr so the shell wrapper can capture stdout and
``cd`` to whatever path a command prints there.
"""

import click


def user_output(message: str = "", *, nl: bool = True) -> None:
    """Write a message for the user to stderr."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: str) -> None:
    """Write a result meant for the shell wrapper to stdout."""
    click.echo(message)
