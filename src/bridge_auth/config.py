"""Bridge configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel
from pydantic_settings import BaseSettings

DEFAULT_GITHUB_URL = "https://github.com"


class GitHubOAuthSettings(BaseModel):
    client_id: str
    client_secret: str = ""
    redirect_uri: str


class GitHubSettings(BaseModel):
    base_url: str = DEFAULT_GITHUB_URL
    # Derived from base_url when unset
    api_url: str | None = None
    oauth: GitHubOAuthSettings | None = None


class BridgeSettings(BaseSettings):
    github: GitHubSettings | None = None
    data_dir: str = "data"
    oauth_state_ttl_seconds: int = 600
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "BRIDGE_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "extra": "ignore",
    }

    @property
    def github_configured(self) -> bool:
        return self.github is not None

    @property
    def github_oauth_configured(self) -> bool:
        return self.github is not None and self.github.oauth is not None

    @property
    def tokens_dir(self) -> Path:
        return Path(self.data_dir) / "tokens"
