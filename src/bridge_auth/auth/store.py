"""Per-user credential store for the bridge.

Keeps one credential per (service, user), hands out OAuth states, and builds
authenticated GitHub clients from what is stored.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..api.client import GITHUB_API_BASE, GitHubClient, api_url_for
from ..config import BridgeSettings, GitHubSettings
from ..errors import TokenError, TokenErrorCode
from ..oauth.state import DEFAULT_STATE_TTL_SECONDS, OAuthStateRegistry
from ..oauth.storage import (
    Credential,
    FileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    OAuthCredential,
    PersonalAccessCredential,
    parse_credential,
    serialize_credential,
)

logger = logging.getLogger(__name__)

GITHUB_SERVICE = "github"

ClientFactory = Callable[[str], GitHubClient]


class UserTokenStore:
    """Credential storage and OAuth state correlation.

    Handles:
    - Pending OAuth states (create on login, consume on callback)
    - Storing OAuth and personal access credentials per user
    - Building GitHub clients, refusing expired or malformed credentials

    Usage:
        store = UserTokenStore(FileKeyValueStore("data/tokens"), settings.github)

        state = store.create_state_for_oauth(user_id)
        await store.store_user_token("github", user_id, credential)

        client = await store.get_client_for_user(user_id)
        if client is None:
            ...  # not linked yet
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        github: GitHubSettings | None = None,
        states: OAuthStateRegistry | None = None,
        client_factory: ClientFactory | None = None,
    ):
        self.store = store if store is not None else MemoryKeyValueStore()
        self.states = states if states is not None else OAuthStateRegistry(DEFAULT_STATE_TTL_SECONDS)
        self.client_factory = client_factory or self._default_client_factory(github)

    @classmethod
    def from_settings(cls, settings: BridgeSettings) -> "UserTokenStore":
        """Create a file-backed store from bridge configuration."""
        return cls(
            store=FileKeyValueStore(settings.tokens_dir),
            github=settings.github,
            states=OAuthStateRegistry(settings.oauth_state_ttl_seconds),
        )

    @staticmethod
    def _default_client_factory(github: GitHubSettings | None) -> ClientFactory:
        if github is None:
            api_url = GITHUB_API_BASE
        else:
            api_url = github.api_url or api_url_for(github.base_url)

        def factory(token: str) -> GitHubClient:
            return GitHubClient(token, api_url=api_url)

        return factory

    @staticmethod
    def _key(service: str, user_id: str) -> str:
        return f"{service}:{user_id}"

    # OAuth state

    def create_state_for_oauth(self, user_id: str) -> str:
        """Create a single-use state value bound to ``user_id``."""
        state = self.states.create(user_id)
        logger.debug("Created OAuth state for %s", user_id)
        return state

    def consume_oauth_state(self, state: str) -> str:
        """Invalidate ``state`` and return the user that started the flow.

        Raises:
            StateNotFoundError: If the state is unknown, stale or already used
        """
        return self.states.consume(state)

    # Credentials

    async def store_user_token(
        self,
        service: str,
        user_id: str,
        credential: Credential | dict[str, Any] | str,
    ) -> Credential:
        """Persist a credential, replacing any previous one for the user.

        Raises:
            TokenError: MALFORMED if ``credential`` is not a valid payload
            PersistenceError: If the backing store fails
        """
        if not isinstance(credential, (OAuthCredential, PersonalAccessCredential)):
            credential = parse_credential(credential)

        await self.store.set(self._key(service, user_id), serialize_credential(credential))
        logger.info("Stored %s credential for %s on %s", credential.token_type, user_id, service)
        return credential

    async def get_user_token(self, service: str, user_id: str) -> Credential | None:
        """Load the stored credential, or None if the user has not linked.

        Raises:
            TokenError: MALFORMED if the stored payload cannot be parsed
            PersistenceError: If the backing store fails
        """
        payload = await self.store.get(self._key(service, user_id))
        if payload is None:
            return None
        return parse_credential(payload)

    async def clear_user_token(self, service: str, user_id: str) -> None:
        await self.store.delete(self._key(service, user_id))
        logger.info("Cleared %s credential for %s", service, user_id)

    async def get_client_for_user(self, user_id: str) -> GitHubClient | None:
        """Build a GitHub client for the user's stored credential.

        Returns:
            An authenticated client, or None if the user has no credential

        Raises:
            TokenError: EXPIRED for an OAuth token past its expiry,
                MALFORMED for an unreadable credential
        """
        credential = await self.get_user_token(GITHUB_SERVICE, user_id)
        if credential is None:
            return None

        if isinstance(credential, OAuthCredential):
            if credential.is_expired:
                raise TokenError(TokenErrorCode.EXPIRED, "GitHub OAuth token has expired")
        elif not isinstance(credential, PersonalAccessCredential):
            raise TokenError(
                TokenErrorCode.MALFORMED,
                f"Unsupported credential type: {type(credential).__name__}",
            )

        return self.client_factory(credential.access_token)

