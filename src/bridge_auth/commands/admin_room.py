"""Turns admin room messages into command runs and failures into notices."""

from __future__ import annotations

import logging

from ..errors import CommandError, UnknownCommandError
from .context import AdminRoomContext
from .github import register_github_commands
from .router import CommandRouter

logger = logging.getLogger(__name__)


def build_router() -> CommandRouter:
    """Router with every admin room command registered."""
    return register_github_commands(CommandRouter())


async def handle_admin_command(router: CommandRouter, text: str, ctx: AdminRoomContext) -> bool:
    """Run one admin room command, reporting failures back to the user.

    Returns:
        True if the command ran to completion
    """
    try:
        await router.dispatch(text, ctx)
        return True
    except UnknownCommandError:
        await ctx.send_notice(router.help_text())
    except CommandError as e:
        logger.info("Command from %s failed: %s", ctx.user_id, e.code)
        await ctx.send_notice(f"Failed to handle command: {e.message}")
    except Exception:
        logger.exception("Unexpected error handling command from %s", ctx.user_id)
        await ctx.send_notice("Failed to handle command: an internal error occurred.")
    return False
