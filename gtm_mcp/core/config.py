"""
Application configuration models and helpers.

Centralizes settings management so both the interactive authentication
script and the local MCP server share a consistent configuration surface.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gtm_mcp.core.errors import ConfigurationError

DEFAULT_CALLBACK_PORT = 3000
CALLBACK_PATH = "/oauth2callback"
DEFAULT_REDIRECT_URI = f"http://localhost:{DEFAULT_CALLBACK_PORT}{CALLBACK_PATH}"
TOKEN_FILE_NAME = ".gtm-mcp-tokens.json"

# Google Tag Manager OAuth scopes
TAG_MANAGER_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/tagmanager.edit.containers",
    "https://www.googleapis.com/auth/tagmanager.readonly",
    "https://www.googleapis.com/auth/tagmanager.edit.containerversions",
)

_SETUP_INSTRUCTIONS = (
    "Missing GOOGLE_CLIENT_ID or GOOGLE_CLIENT_SECRET.\n"
    "Please create a .env file with these variables.\n"
    "\n"
    "To get these credentials:\n"
    "1. Go to https://console.cloud.google.com/\n"
    "2. Create or select a project\n"
    "3. Enable Google Tag Manager API\n"
    "4. Create OAuth 2.0 credentials (Desktop app or Web application)\n"
    "5. Add {redirect_uri} as an authorized redirect URI"
)


def _default_token_path() -> Path:
    """Resolve the token file inside the operator's home/profile directory."""
    home = os.environ.get("HOME") or os.environ.get("USERPROFILE") or ""
    return Path(home) / TOKEN_FILE_NAME


class _EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class GoogleSettings(_EnvSettings):
    """Configuration required for interacting with Google OAuth."""

    client_id: Optional[str] = Field(None, alias="GOOGLE_CLIENT_ID")
    client_secret: Optional[str] = Field(None, alias="GOOGLE_CLIENT_SECRET")
    redirect_uri: str = Field(DEFAULT_REDIRECT_URI, alias="GOOGLE_REDIRECT_URI")
    user_email: str = Field(
        "user@example.com",
        alias="GOOGLE_USER_EMAIL",
        description="Label reported to tools as the authenticated operator.",
    )

    @field_validator("client_id", "client_secret", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def scopes(self) -> tuple[str, ...]:
        """Tag Manager scopes requested at consent; not configurable."""
        return TAG_MANAGER_SCOPES

    @property
    def callback_port(self) -> int:
        """Port the local callback listener binds to."""
        return urlparse(self.redirect_uri).port or DEFAULT_CALLBACK_PORT

    def require_client(self) -> tuple[str, str]:
        """Return ``(client_id, client_secret)`` or explain how to obtain them."""
        if not self.client_id or not self.client_secret:
            raise ConfigurationError(
                _SETUP_INSTRUCTIONS.format(redirect_uri=self.redirect_uri)
            )
        return self.client_id, self.client_secret


class TokenStoreSettings(_EnvSettings):
    """Where the single credential record lives."""

    token_path: Path = Field(default_factory=_default_token_path, alias="GTM_MCP_TOKEN_PATH")


class AppSettings(_EnvSettings):
    """Root settings object shared by the server and the auth script."""

    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    auth_timeout_seconds: float = Field(
        300.0,
        alias="GTM_MCP_AUTH_TIMEOUT_SECONDS",
        description="How long the authentication script waits for the browser callback.",
    )
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    storage: TokenStoreSettings = Field(default_factory=TokenStoreSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "CALLBACK_PATH",
    "DEFAULT_REDIRECT_URI",
    "GoogleSettings",
    "TAG_MANAGER_SCOPES",
    "TokenStoreSettings",
    "get_settings",
]
