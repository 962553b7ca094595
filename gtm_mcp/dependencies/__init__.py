"""Expose factory helpers for shared clients and services."""

from .clients import (
    get_authorization_flow_runner,
    get_credential_manager,
    get_google_oauth_client,
    get_token_store,
)

__all__ = [
    "get_authorization_flow_runner",
    "get_credential_manager",
    "get_google_oauth_client",
    "get_token_store",
]
