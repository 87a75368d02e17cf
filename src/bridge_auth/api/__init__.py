"""GitHub API access for the bridge."""

from .client import GitHubClient, GitHubError, GitHubAuthError, api_url_for

__all__ = [
    "GitHubClient",
    "GitHubError",
    "GitHubAuthError",
    "api_url_for",
]
