"""GitHub account commands for the admin room."""

from __future__ import annotations

import logging

from ..api.client import GitHubError
from ..auth.store import GITHUB_SERVICE
from ..config import GitHubSettings
from ..errors import ConfigurationError, TokenError, TokenErrorCode
from ..oauth.client import generate_github_oauth_url
from ..oauth.storage import PersonalAccessCredential
from .context import AdminRoomContext
from .router import Category, CommandDescriptor, CommandRouter

logger = logging.getLogger(__name__)

LOGIN = CommandDescriptor.create(
    "github login",
    help="Log in to GitHub",
    category=Category.GITHUB,
)
SET_PERSONAL_TOKEN = CommandDescriptor.create(
    "github setpersonaltoken",
    help="Set your personal access token for GitHub",
    category=Category.GITHUB,
    required_args=["accessToken"],
)
STATUS = CommandDescriptor.create(
    "github status",
    help="Check the status of your GitHub authentication",
    category=Category.GITHUB,
)


def _require_github(ctx: AdminRoomContext) -> GitHubSettings:
    github = ctx.config.github
    if github is None:
        raise ConfigurationError("no-github-support", "The bridge is not configured with GitHub support.")
    return github


async def login_command(ctx: AdminRoomContext) -> None:
    github = _require_github(ctx)
    if github.oauth is None:
        raise ConfigurationError("no-github-support", "The bridge is not configured with GitHub OAuth support.")

    state = ctx.token_store.create_state_for_oauth(ctx.user_id)
    url = generate_github_oauth_url(github.oauth.client_id, github.oauth.redirect_uri, github.base_url, state)
    await ctx.send_notice(f"Open {url} to link your account to the bridge.")


async def set_personal_token_command(ctx: AdminRoomContext, access_token: str) -> None:
    _require_github(ctx)

    try:
        async with ctx.token_store.client_factory(access_token) as client:
            me = await client.users.get_authenticated()
    except GitHubError as e:
        logger.error("Failed to auth with GitHub for %s: %s", ctx.user_id, e)
        await ctx.send_notice("Could not authenticate with GitHub. Is your token correct?")
        return

    await ctx.token_store.store_user_token(
        GITHUB_SERVICE, ctx.user_id, PersonalAccessCredential(access_token=access_token)
    )
    await ctx.send_notice(f"Connected as {me['login']}. Token stored.")


async def status_command(ctx: AdminRoomContext) -> None:
    _require_github(ctx)

    try:
        client = await ctx.token_store.get_client_for_user(ctx.user_id)
    except TokenError as e:
        if e.code == TokenErrorCode.EXPIRED:
            await ctx.send_notice("Your authentication is no longer valid, please login again.")
        else:
            logger.warning("Unusable GitHub credential for %s: %s", ctx.user_id, e)
            await ctx.send_notice("Your stored GitHub credentials could not be read, please login again.")
        return

    if client is None:
        await ctx.send_notice("You are not authenticated, please login.")
        return

    try:
        async with client:
            me = await client.users.get_authenticated()
    except GitHubError as e:
        logger.warning("Failed to fetch GitHub identity for %s: %s", ctx.user_id, e)
        await ctx.send_notice("Could not check your GitHub authentication status.")
        return

    await ctx.send_notice(f"You are logged in as {me['login']}")


def register_github_commands(router: CommandRouter) -> CommandRouter:
    router.register(LOGIN, login_command)
    router.register(SET_PERSONAL_TOKEN, set_personal_token_command)
    router.register(STATUS, status_command)
    return router
