"""
Factory functions to provide shared clients and services built from settings.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from gtm_mcp.clients import GoogleOAuthClient, TokenFileStore
from gtm_mcp.core.config import AppSettings, get_settings
from gtm_mcp.services import AuthorizationFlowRunner, CredentialLifecycleManager


@lru_cache()
def _settings() -> AppSettings:
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    return GoogleOAuthClient(_settings().google)


@lru_cache()
def get_token_store() -> TokenFileStore:
    """Provide the store for the single credential record."""
    return TokenFileStore(_settings().storage.token_path)


def get_credential_manager() -> CredentialLifecycleManager:
    """Build the manager that owns the server's current credentials."""
    settings = _settings()
    return CredentialLifecycleManager(
        google_settings=settings.google,
        oauth_client=get_google_oauth_client(),
        store=get_token_store(),
    )


def get_authorization_flow_runner(
    *, timeout_seconds: Optional[float] = None, open_browser: bool = True
) -> AuthorizationFlowRunner:
    """Build a runner for one interactive authorization attempt."""
    settings = _settings()
    return AuthorizationFlowRunner(
        google_settings=settings.google,
        oauth_client=get_google_oauth_client(),
        store=get_token_store(),
        timeout_seconds=(
            timeout_seconds if timeout_seconds is not None else settings.auth_timeout_seconds
        ),
        open_browser=open_browser,
    )


__all__ = [
    "get_authorization_flow_runner",
    "get_credential_manager",
    "get_google_oauth_client",
    "get_token_store",
]
