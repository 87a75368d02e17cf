"""OAuth 2.0 client for GitHub Apps and OAuth Apps.

Handles the two halves of the Authorization Code flow the bridge drives:
1. Build the authorization URL the user opens
2. Exchange the code from the callback for an access token
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from urllib.parse import urlencode, urljoin

import httpx

from ..config import GitHubSettings
from .storage import OAuthCredential

logger = logging.getLogger(__name__)

AUTHORIZE_PATH = "/login/oauth/authorize"
ACCESS_TOKEN_PATH = "/login/oauth/access_token"


class OAuthError(Exception):
    """OAuth-related error."""

    def __init__(self, message: str, error_code: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


def generate_github_oauth_url(client_id: str, redirect_uri: str, base_url: str, state: str) -> str:
    """Build the URL a user opens to authorize the bridge."""
    query = urlencode(
        {
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "state": state,
        }
    )
    return f"{urljoin(base_url, AUTHORIZE_PATH)}?{query}"


class GitHubOAuthClient:
    """Exchanges authorization codes for tokens.

    Usage:
        client = GitHubOAuthClient.from_settings(settings.github)
        credential = await client.exchange_code(code)
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        base_url: str = "https://github.com",
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.base_url = base_url

    @classmethod
    def from_settings(cls, github: GitHubSettings | None) -> "GitHubOAuthClient":
        """Create client from bridge configuration.

        Raises:
            OAuthError: If OAuth is not configured
        """
        if github is None or github.oauth is None:
            raise OAuthError(
                "The bridge is not configured with GitHub OAuth support.",
                error_code="not_configured",
            )
        return cls(
            client_id=github.oauth.client_id,
            client_secret=github.oauth.client_secret,
            redirect_uri=github.oauth.redirect_uri,
            base_url=github.base_url,
        )

    def get_authorization_url(self, state: str) -> str:
        return generate_github_oauth_url(self.client_id, self.redirect_uri, self.base_url, state)

    async def exchange_code(self, code: str) -> OAuthCredential:
        """Exchange an authorization code for an access token.

        Raises:
            OAuthError: If GitHub rejects the code or the response is unusable
        """
        async with httpx.AsyncClient(timeout=30.0) as client:
            try:
                response = await client.post(
                    urljoin(self.base_url, ACCESS_TOKEN_PATH),
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "code": code,
                        "redirect_uri": self.redirect_uri,
                    },
                    headers={"Accept": "application/json"},
                )
            except httpx.HTTPError as e:
                raise OAuthError(f"Token exchange failed: {e}", error_code="transport_error")

            try:
                data = response.json() if response.content else {}
            except ValueError:
                data = {"raw_response": response.text[:500]}
            if not isinstance(data, dict):
                raise OAuthError(
                    "Invalid token response: expected a JSON object",
                    error_code="invalid_response",
                    details={"status_code": response.status_code},
                )

            # GitHub reports a bad code with a 200 and an "error" field
            if response.status_code != 200 or "error" in data:
                logger.warning(
                    "GitHub token exchange failed: status=%s error=%s",
                    response.status_code,
                    data.get("error"),
                )
                raise OAuthError(
                    f"Token exchange failed: {data.get('error_description') or response.status_code}",
                    error_code=data.get("error", "exchange_failed"),
                    details=data,
                )

            return self._parse_token_response(data)

    def _parse_token_response(self, data: dict[str, Any]) -> OAuthCredential:
        """Parse token response from GitHub.

        Raises:
            OAuthError: If required fields are missing or have the wrong type
        """
        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise OAuthError(
                "Invalid token response: missing 'access_token'",
                error_code="invalid_response",
                details={"response_keys": list(data.keys())},
            )
        refresh_token = data.get("refresh_token")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise OAuthError(
                "Invalid token response: 'refresh_token' must be a string",
                error_code="invalid_response",
            )

        now = int(datetime.now().timestamp())
        expires_in = _seconds(data, "expires_in")
        refresh_expires_in = _seconds(data, "refresh_token_expires_in")
        return OAuthCredential(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=now + expires_in if expires_in else None,
            refresh_token_expires_at=now + refresh_expires_in if refresh_expires_in else None,
        )


def _seconds(data: dict[str, Any], key: str) -> int | None:
    # Lifetimes arrive as integers, or as digit strings from form-encoded replies
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, str) and value.isdigit():
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    raise OAuthError(
        f"Invalid token response: '{key}' must be a number of seconds",
        error_code="invalid_response",
    )
