"""Completion of the OAuth flow once GitHub redirects back to the bridge."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .client import GitHubOAuthClient

if TYPE_CHECKING:
    from ..auth.store import UserTokenStore

logger = logging.getLogger(__name__)


async def complete_oauth_flow(
    token_store: "UserTokenStore",
    oauth_client: GitHubOAuthClient,
    state: str,
    code: str,
) -> str:
    """Link the account of the user who started the flow.

    The state is consumed before the code is exchanged, so a failed exchange
    still invalidates it.

    Args:
        token_store: Store holding the pending state
        oauth_client: Client used to exchange the code
        state: ``state`` query parameter from the callback
        code: ``code`` query parameter from the callback

    Returns:
        The id of the user whose credential was stored

    Raises:
        StateNotFoundError: If the state is unknown or already used
        OAuthError: If GitHub rejects the code
    """
    user_id = token_store.consume_oauth_state(state)
    credential = await oauth_client.exchange_code(code)
    await token_store.store_user_token("github", user_id, credential)
    logger.info("Completed GitHub OAuth flow for %s", user_id)
    return user_id
