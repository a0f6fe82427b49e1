"""Shell completion for identifier arguments."""

import logging

import click
from click.shell_completion import CompletionItem

from twiggit.core.context import TwiggitContext, create_context
from twiggit.core.errors import TwiggitError

logger = logging.getLogger(__name__)


def _twiggit_context(ctx: click.Context) -> TwiggitContext:
    # Group callbacks do not run during completion, so obj is usually unset.
    obj = ctx.find_root().obj
    if isinstance(obj, TwiggitContext):
        return obj
    return create_context()


def _complete(ctx: click.Context, incomplete: str, *, existing_only: bool) -> list[CompletionItem]:
    try:
        twiggit_ctx = _twiggit_context(ctx)
        context = twiggit_ctx.detector.detect(twiggit_ctx.cwd)
        suggestions = twiggit_ctx.resolver.get_resolution_suggestions(
            context, incomplete, existing_only=existing_only
        )
    except TwiggitError:
        # Completion must never print a traceback into the user's prompt.
        logger.debug("completion failed", exc_info=True)
        return []
    return [CompletionItem(s.text, help=s.description) for s in suggestions]


def complete_targets(
    ctx: click.Context, param: click.Parameter, incomplete: str
) -> list[CompletionItem]:
    """Complete any project, worktree, or branch reachable from here."""
    return _complete(ctx, incomplete, existing_only=False)


def complete_existing_worktrees(
    ctx: click.Context, param: click.Parameter, incomplete: str
) -> list[CompletionItem]:
    """Complete only worktrees that exist on disk."""
    return _complete(ctx, incomplete, existing_only=True)
