"""Shared test fixtures for the bridge auth test suite."""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import httpx

from bridge_auth.api.client import GitHubClient
from bridge_auth.auth.store import UserTokenStore
from bridge_auth.commands.context import AdminRoomContext
from bridge_auth.config import BridgeSettings, GitHubOAuthSettings, GitHubSettings
from bridge_auth.oauth.storage import MemoryKeyValueStore

# Sample IDs used across tests
SAMPLE_USER_ID = "@alice:example.org"
OTHER_USER_ID = "@bob:example.org"
SAMPLE_PAT = "ghp_test_token_abc123"
SAMPLE_CLIENT_ID = "abc"
SAMPLE_REDIRECT_URI = "https://bridge/cb"
SAMPLE_BASE_URL = "https://github.example"


# ============================================================================
# Mock Response Data
# ============================================================================

MOCK_GITHUB_USER = {
    "login": "octocat",
    "id": 583231,
    "name": "The Octocat",
    "type": "User",
}


def transport_client_factory(handler):
    """Client factory building real GitHubClients over an httpx.MockTransport."""
    def factory(token):
        return GitHubClient(token, transport=httpx.MockTransport(handler))
    return factory


def html_bad_gateway(request):
    """Handler answering like a proxy in front of GitHub Enterprise."""
    return httpx.Response(502, text="<html><body>Bad Gateway</body></html>", headers={"Content-Type": "text/html"})


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def oauth_settings():
    """Bridge settings with GitHub OAuth configured."""
    return BridgeSettings(
        _env_file=None,
        github=GitHubSettings(
            base_url=SAMPLE_BASE_URL,
            oauth=GitHubOAuthSettings(
                client_id=SAMPLE_CLIENT_ID,
                client_secret="shh",
                redirect_uri=SAMPLE_REDIRECT_URI,
            ),
        ),
    )


@pytest.fixture
def github_settings():
    """Bridge settings with GitHub but no OAuth."""
    return BridgeSettings(_env_file=None, github=GitHubSettings(base_url=SAMPLE_BASE_URL))


@pytest.fixture
def no_github_settings():
    """Bridge settings without any GitHub section."""
    return BridgeSettings(_env_file=None)


@pytest.fixture
def mock_github_client():
    """GitHubClient stand-in usable as an async context manager."""
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.users = MagicMock()
    client.users.get_authenticated = AsyncMock(return_value=MOCK_GITHUB_USER)
    return client


@pytest.fixture
def client_factory(mock_github_client):
    """Factory returning the mock client for any token."""
    return MagicMock(return_value=mock_github_client)


@pytest.fixture
def kv_store():
    return MemoryKeyValueStore()


@pytest.fixture
def token_store(kv_store, client_factory):
    """UserTokenStore over an in-memory store with a mocked GitHub client."""
    return UserTokenStore(store=kv_store, client_factory=client_factory)


@pytest.fixture
def notices():
    """List collecting notices sent to the admin room."""
    return []


@pytest.fixture
def make_context(token_store, notices):
    """Build an AdminRoomContext for a user and settings."""
    def _create(settings, user_id=SAMPLE_USER_ID):
        async def send(text):
            notices.append(text)

        return AdminRoomContext(
            user_id=user_id,
            config=settings,
            token_store=token_store,
            notice_sender=send,
        )
    return _create


def future_ts(seconds=3600):
    return int(datetime.now().timestamp()) + seconds


def past_ts(seconds=3600):
    return int(datetime.now().timestamp()) - seconds


# ============================================================================
# CLI Testing Fixtures
# ============================================================================

@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()
