"""Tests for the GitHub OAuth client and callback completion."""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs, urlparse

import httpx

from bridge_auth.auth.store import GITHUB_SERVICE
from bridge_auth.config import GitHubOAuthSettings, GitHubSettings
from bridge_auth.errors import StateNotFoundError
from bridge_auth.oauth.callback import complete_oauth_flow
from bridge_auth.oauth.client import GitHubOAuthClient, OAuthError, generate_github_oauth_url
from bridge_auth.oauth.storage import OAuthCredential
from tests.conftest import SAMPLE_BASE_URL, SAMPLE_CLIENT_ID, SAMPLE_REDIRECT_URI, SAMPLE_USER_ID


def mock_httpx(response=None, side_effect=None):
    """Patch httpx.AsyncClient so post() returns ``response``."""
    patcher = patch("httpx.AsyncClient")
    MockAsyncClient = patcher.start()
    mock_client = AsyncMock()
    mock_client.post = AsyncMock(return_value=response, side_effect=side_effect)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    MockAsyncClient.return_value = mock_client
    return patcher, mock_client


def token_response(status_code=200, data=None):
    response = MagicMock()
    response.status_code = status_code
    response.content = b"{}"
    response.json.return_value = data or {}
    return response


class TestGenerateOAuthUrl:
    """Tests for generate_github_oauth_url."""

    def test_example_url(self):
        """Should produce the authorize URL with encoded query parameters."""
        url = generate_github_oauth_url(SAMPLE_CLIENT_ID, SAMPLE_REDIRECT_URI, SAMPLE_BASE_URL, "s" * 43)

        assert url == (
            "https://github.example/login/oauth/authorize"
            "?client_id=abc&redirect_uri=https%3A%2F%2Fbridge%2Fcb&state=" + "s" * 43
        )

    def test_path_replaces_base_path(self):
        url = generate_github_oauth_url("id", "https://bridge/cb", "https://ghe.example/some/path", "st")

        parsed = urlparse(url)
        assert parsed.netloc == "ghe.example"
        assert parsed.path == "/login/oauth/authorize"
        assert parse_qs(parsed.query) == {
            "client_id": ["id"],
            "redirect_uri": ["https://bridge/cb"],
            "state": ["st"],
        }


class TestGitHubOAuthClient:
    """Tests for GitHubOAuthClient."""

    @pytest.fixture
    def client(self):
        return GitHubOAuthClient(
            client_id=SAMPLE_CLIENT_ID,
            client_secret="secret",
            redirect_uri=SAMPLE_REDIRECT_URI,
            base_url=SAMPLE_BASE_URL,
        )

    def test_from_settings(self):
        github = GitHubSettings(
            base_url=SAMPLE_BASE_URL,
            oauth=GitHubOAuthSettings(client_id="cid", client_secret="sec", redirect_uri="https://r"),
        )

        client = GitHubOAuthClient.from_settings(github)

        assert client.client_id == "cid"
        assert client.base_url == SAMPLE_BASE_URL

    @pytest.mark.parametrize("github", [None, GitHubSettings()])
    def test_from_settings_without_oauth(self, github):
        with pytest.raises(OAuthError) as exc_info:
            GitHubOAuthClient.from_settings(github)

        assert exc_info.value.error_code == "not_configured"

    def test_get_authorization_url(self, client):
        url = client.get_authorization_url("state123")

        assert url.startswith(f"{SAMPLE_BASE_URL}/login/oauth/authorize?")
        assert "state=state123" in url

    @pytest.mark.asyncio
    async def test_exchange_code_success(self, client):
        """Should exchange code for an OAuth credential with absolute expiry."""
        patcher, mock_client = mock_httpx(
            token_response(
                data={
                    "access_token": "gho_new",
                    "refresh_token": "ghr_new",
                    "expires_in": 28800,
                    "refresh_token_expires_in": 15811200,
                    "token_type": "bearer",
                }
            )
        )
        try:
            credential = await client.exchange_code("code123")
        finally:
            patcher.stop()

        now = int(datetime.now().timestamp())
        assert credential.access_token == "gho_new"
        assert credential.refresh_token == "ghr_new"
        assert now + 28790 <= credential.expires_at <= now + 28810
        assert credential.token_type == "oauth"

        args, kwargs = mock_client.post.call_args
        assert args[0] == f"{SAMPLE_BASE_URL}/login/oauth/access_token"
        assert kwargs["data"]["code"] == "code123"
        assert kwargs["headers"]["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_exchange_code_without_expiry(self, client):
        patcher, _ = mock_httpx(token_response(data={"access_token": "gho_new", "token_type": "bearer"}))
        try:
            credential = await client.exchange_code("code123")
        finally:
            patcher.stop()

        assert credential.expires_at is None
        assert credential.refresh_token is None

    @pytest.mark.asyncio
    async def test_exchange_code_error_body(self, client):
        """GitHub reports bad codes in a 200 body."""
        patcher, _ = mock_httpx(
            token_response(data={"error": "bad_verification_code", "error_description": "The code is incorrect"})
        )
        try:
            with pytest.raises(OAuthError) as exc_info:
                await client.exchange_code("expired")
        finally:
            patcher.stop()

        assert exc_info.value.error_code == "bad_verification_code"

    @pytest.mark.asyncio
    async def test_exchange_code_http_failure(self, client):
        patcher, _ = mock_httpx(token_response(status_code=500, data={}))
        try:
            with pytest.raises(OAuthError) as exc_info:
                await client.exchange_code("code")
        finally:
            patcher.stop()

        assert exc_info.value.error_code == "exchange_failed"

    @pytest.mark.asyncio
    async def test_exchange_code_transport_error(self, client):
        patcher, _ = mock_httpx(side_effect=httpx.ConnectError("refused"))
        try:
            with pytest.raises(OAuthError) as exc_info:
                await client.exchange_code("code")
        finally:
            patcher.stop()

        assert exc_info.value.error_code == "transport_error"

    @pytest.mark.asyncio
    async def test_exchange_code_missing_token(self, client):
        patcher, _ = mock_httpx(token_response(data={"scope": ""}))
        try:
            with pytest.raises(OAuthError) as exc_info:
                await client.exchange_code("code")
        finally:
            patcher.stop()

        assert exc_info.value.error_code == "invalid_response"

    @pytest.mark.asyncio
    async def test_exchange_code_non_object_body(self, client):
        """A JSON array is not a token response."""
        patcher, _ = mock_httpx(token_response(data=["access_token", "gho_new"]))
        try:
            with pytest.raises(OAuthError) as exc_info:
                await client.exchange_code("code")
        finally:
            patcher.stop()

        assert exc_info.value.error_code == "invalid_response"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "fields",
        [
            {"expires_in": "abc"},
            {"expires_in": 28800.5},
            {"expires_in": True},
            {"refresh_token_expires_in": -1},
            {"refresh_token": 42},
            {"access_token": ["gho_new"]},
        ],
    )
    async def test_exchange_code_bad_field_types(self, client, fields):
        data = {"access_token": "gho_new", "token_type": "bearer", **fields}
        patcher, _ = mock_httpx(token_response(data=data))
        try:
            with pytest.raises(OAuthError) as exc_info:
                await client.exchange_code("code")
        finally:
            patcher.stop()

        assert exc_info.value.error_code == "invalid_response"

    @pytest.mark.asyncio
    async def test_exchange_code_numeric_string_expiry(self, client):
        patcher, _ = mock_httpx(
            token_response(data={"access_token": "gho_new", "expires_in": "28800", "token_type": "bearer"})
        )
        try:
            credential = await client.exchange_code("code")
        finally:
            patcher.stop()

        now = int(datetime.now().timestamp())
        assert now + 28790 <= credential.expires_at <= now + 28810


class TestCompleteOAuthFlow:
    """Tests for complete_oauth_flow."""

    @pytest.fixture
    def oauth_client(self):
        client = MagicMock(spec=GitHubOAuthClient)
        client.exchange_code = AsyncMock(return_value=OAuthCredential(access_token="gho_linked"))
        return client

    @pytest.mark.asyncio
    async def test_stores_credential_for_state_owner(self, token_store, oauth_client):
        state = token_store.create_state_for_oauth(SAMPLE_USER_ID)

        user_id = await complete_oauth_flow(token_store, oauth_client, state, "code123")

        assert user_id == SAMPLE_USER_ID
        oauth_client.exchange_code.assert_awaited_once_with("code123")
        stored = await token_store.get_user_token(GITHUB_SERVICE, SAMPLE_USER_ID)
        assert stored == OAuthCredential(access_token="gho_linked")

    @pytest.mark.asyncio
    async def test_unknown_state_stores_nothing(self, token_store, oauth_client):
        with pytest.raises(StateNotFoundError):
            await complete_oauth_flow(token_store, oauth_client, "forged", "code123")

        oauth_client.exchange_code.assert_not_called()

    @pytest.mark.asyncio
    async def test_state_consumed_even_if_exchange_fails(self, token_store, oauth_client):
        oauth_client.exchange_code.side_effect = OAuthError("nope", error_code="bad_verification_code")
        state = token_store.create_state_for_oauth(SAMPLE_USER_ID)

        with pytest.raises(OAuthError):
            await complete_oauth_flow(token_store, oauth_client, state, "bad")

        with pytest.raises(StateNotFoundError):
            token_store.consume_oauth_state(state)
        assert await token_store.get_user_token(GITHUB_SERVICE, SAMPLE_USER_ID) is None
