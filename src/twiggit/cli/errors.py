"""CLI error handling with styled output.

Core errors are formatted here with one match on ErrorKind and turned into
exit status 1. All errors use a red "Error:" prefix.
"""

import functools
import logging
from collections.abc import Callable
from typing import NoReturn, ParamSpec, TypeVar

import click

from twiggit.cli.output import user_output
from twiggit.core.errors import ErrorKind, TwiggitError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def fail(message: str) -> NoReturn:
    """Print a styled error and exit with status 1."""
    user_output(click.style("Error: ", fg="red") + message)
    raise SystemExit(1)


def format_error(error: TwiggitError) -> str:
    match error.kind:
        case ErrorKind.VALIDATION:
            text = error.message
            suggestions = getattr(error, "suggestions", ())
            if suggestions:
                text += "\n" + "\n".join(f"  Try: {s}" for s in suggestions)
            return text
        case ErrorKind.WORKTREE_SERVICE | ErrorKind.PROJECT_SERVICE:
            return error.message
        case ErrorKind.GIT_REPOSITORY | ErrorKind.GIT_WORKTREE:
            return f"git: {error.message}"
        case ErrorKind.GIT_COMMAND:
            return error.message
        case ErrorKind.CONFIG:
            return f"invalid configuration: {error.message}"
        case ErrorKind.SHELL:
            return f"shell wrapper: {error.message}"


def handle_errors(func: Callable[P, R]) -> Callable[P, R]:
    """Report TwiggitError raised by a command instead of a traceback."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except TwiggitError as e:
            logger.debug("%s failed", func.__name__, exc_info=True)
            fail(format_error(e))

    return wrapper
