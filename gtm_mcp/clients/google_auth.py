"""
Google OAuth utilities.

These helpers build the consent URL and talk to the Google token endpoint for
code exchange and refresh.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from gtm_mcp.core.config import GoogleSettings
from gtm_mcp.models.oauth import TokenGrant


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint returns an error."""


class GoogleOAuthClient:
    """Build Google authorization URLs and exchange authorization codes."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        google_settings: GoogleSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._google = google_settings
        self._transport = transport

    @property
    def client_id(self) -> str:
        return self._google.require_client()[0]

    def build_authorization_url(self) -> str:
        """Construct the Google OAuth consent URL.

        ``access_type=offline`` asks for a refresh token and ``prompt=consent``
        makes Google issue one again for operators who granted access before.
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self._google.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._google.scopes),
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenGrant:
        """Exchange an authorization code for tokens."""
        client_id, client_secret = self._google.require_client()
        payload = {
            "code": code,
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": self._google.redirect_uri,
            "grant_type": "authorization_code",
        }
        return await self._post_token(payload)

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """Refresh the access token using a stored refresh token."""
        client_id, client_secret = self._google.require_client()
        payload = {
            "client_id": client_id,
            "client_secret": client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        return await self._post_token(payload)

    async def _post_token(self, payload: dict[str, str]) -> TokenGrant:
        async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
            response = await client.post(self.TOKEN_URL, data=payload)

        if response.status_code != HTTPStatus.OK:
            raise OAuthTokenExchangeError(response.text)

        try:
            return TokenGrant.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise OAuthTokenExchangeError(
                "Incomplete token payload returned from Google."
            ) from exc


__all__ = [
    "GoogleOAuthClient",
    "OAuthTokenExchangeError",
]
