"""Expose constructed client wrappers."""

from .google_auth import GoogleOAuthClient, OAuthTokenExchangeError
from .token_file import TokenFileStore

__all__ = [
    "GoogleOAuthClient",
    "OAuthTokenExchangeError",
    "TokenFileStore",
]
