"""Errors raised by the credential lifecycle.

Every error carries operator-facing text describing the next step to take.
"""

from __future__ import annotations

from pathlib import Path


class GTMAuthError(Exception):
    """Base class for authentication failures surfaced to the operator."""


class ConfigurationError(GTMAuthError):
    """Raised when the OAuth client id or secret is not configured."""


class MissingCodeError(GTMAuthError):
    """Raised when the OAuth callback arrives without an authorization code."""

    def __init__(self) -> None:
        super().__init__("Missing authorization code")


class AuthorizationDeniedError(GTMAuthError):
    """Raised when Google redirects back with an ``error`` parameter."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Authorization was not granted: {reason}")


class MissingRefreshTokenError(GTMAuthError):
    """Raised when the code exchange does not yield a refresh token."""

    def __init__(self) -> None:
        super().__init__(
            "No refresh token received. Please revoke access at "
            "https://myaccount.google.com/permissions and try again."
        )


class AuthenticationTimeoutError(GTMAuthError):
    """Raised when no OAuth callback arrives within the allotted window."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Authentication timeout: no callback received within {timeout_seconds:g} seconds. "
            "Run the authentication flow again."
        )


class CallbackListenerError(GTMAuthError):
    """Raised when the local callback listener cannot be started or serve the callback."""


class NoCredentialsError(GTMAuthError):
    """Raised when no usable credential record is stored."""

    def __init__(self, token_path: Path, detail: str | None = None) -> None:
        self.token_path = token_path
        message = (
            f"No authentication tokens found at {token_path}. "
            "Please run the authentication flow first.\n"
            "Run: gtm-mcp-auth"
        )
        if detail:
            message = f"{detail}\n{message}"
        super().__init__(message)


class RefreshFailedError(GTMAuthError):
    """Raised when the stored refresh token can no longer be exchanged."""

    def __init__(self, token_path: Path) -> None:
        self.token_path = token_path
        super().__init__(
            f"Please re-authenticate. Delete {token_path} and run the "
            "authentication flow again (gtm-mcp-auth)."
        )


class NoAccessTokenError(GTMAuthError):
    """Raised when the access token is requested before initialization."""

    def __init__(self) -> None:
        super().__init__("No access token available")


__all__ = [
    "AuthenticationTimeoutError",
    "AuthorizationDeniedError",
    "CallbackListenerError",
    "ConfigurationError",
    "GTMAuthError",
    "MissingCodeError",
    "MissingRefreshTokenError",
    "NoAccessTokenError",
    "NoCredentialsError",
    "RefreshFailedError",
]
