"""GitHub API client - the small part of the REST API the bridge needs."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import httpx

GITHUB_API_BASE = "https://api.github.com"


class GitHubError(Exception):
    """Base exception for GitHub API errors."""

    def __init__(self, message: str, status_code: int | None = None, response: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class GitHubAuthError(GitHubError):
    """Authentication error."""

    pass


def api_url_for(base_url: str) -> str:
    """Map a GitHub web URL to its REST API root.

    github.com uses a separate API host, GitHub Enterprise Server serves the
    API under /api/v3 on the same host.
    """
    host = urlparse(base_url).hostname or ""
    if host in ("github.com", "www.github.com"):
        return GITHUB_API_BASE
    return f"{base_url.rstrip('/')}/api/v3"


class GitHubClient:
    """GitHub API client authenticated as one user.

    Usage:
        async with GitHubClient(token) as client:
            me = await client.users.get_authenticated()
            print(me["login"])
    """

    def __init__(
        self,
        token: str,
        api_url: str = GITHUB_API_BASE,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not token:
            raise GitHubAuthError("A GitHub token is required")

        self.api_url = api_url
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=30.0,
            transport=transport,
        )

        self.users = UsersClient(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, path: str) -> dict[str, Any]:
        """Make an API request with error handling."""
        try:
            response = await self._client.request(method=method, url=path)

            if response.status_code == 401:
                raise GitHubAuthError("Bad credentials or token revoked", 401)

            response.raise_for_status()
            if not response.content:
                return {}
            try:
                data = response.json()
            except ValueError:
                raise GitHubError("Invalid response from GitHub: body is not JSON", response.status_code)
            if not isinstance(data, dict):
                raise GitHubError("Invalid response from GitHub: expected an object", response.status_code)
            return data

        except httpx.HTTPStatusError as e:
            raise GitHubError(
                f"API error: {e.response.status_code}",
                e.response.status_code,
                _error_body(e.response),
            )
        except httpx.RequestError as e:
            raise GitHubError(f"Could not reach GitHub: {e}")


def _error_body(response: httpx.Response) -> dict | None:
    # Proxies in front of GitHub Enterprise answer with HTML error pages
    if not response.content:
        return None
    try:
        data = response.json()
    except ValueError:
        return {"raw_response": response.text[:500]}
    return data if isinstance(data, dict) else {"raw_response": data}


class UsersClient:
    """Users API operations."""

    def __init__(self, client: GitHubClient):
        self._client = client

    async def get_authenticated(self) -> dict:
        """Get the user the token belongs to.

        Raises:
            GitHubError: If the response carries no login
        """
        me = await self._client._request("GET", "/user")
        if not isinstance(me.get("login"), str) or not me["login"]:
            raise GitHubError("Invalid response from GitHub: missing 'login'")
        return me
