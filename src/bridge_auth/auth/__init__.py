"""Per-user GitHub credential management.

Usage:
    from bridge_auth.auth import UserTokenStore

    store = UserTokenStore.from_settings(settings)
    client = await store.get_client_for_user("@alice:example.org")
"""

from .store import UserTokenStore, GITHUB_SERVICE

__all__ = [
    "UserTokenStore",
    "GITHUB_SERVICE",
]
