"""OAuth module for linking GitHub accounts.

Provides the pieces of the OAuth 2.0 Authorization Code flow the bridge needs:
state correlation, authorization URLs, code exchange and credential records.

Usage:
    from bridge_auth.oauth import GitHubOAuthClient, complete_oauth_flow

    client = GitHubOAuthClient.from_settings(settings.github)
    url = client.get_authorization_url(token_store.create_state_for_oauth(user_id))
    # User visits url, GitHub redirects back with ?code=...&state=...
    user_id = await complete_oauth_flow(token_store, client, state, code)
"""

from .client import GitHubOAuthClient, OAuthError, generate_github_oauth_url
from .callback import complete_oauth_flow
from .state import OAuthState, OAuthStateRegistry
from .storage import (
    Credential,
    FileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    OAuthCredential,
    PersonalAccessCredential,
    parse_credential,
    serialize_credential,
)

__all__ = [
    "GitHubOAuthClient",
    "OAuthError",
    "generate_github_oauth_url",
    "complete_oauth_flow",
    "OAuthState",
    "OAuthStateRegistry",
    "Credential",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "OAuthCredential",
    "PersonalAccessCredential",
    "parse_credential",
    "serialize_credential",
]
