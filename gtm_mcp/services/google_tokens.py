"""
Helpers for loading and refreshing the persisted Google OAuth credentials.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx
from google.oauth2.credentials import Credentials

from gtm_mcp.clients import GoogleOAuthClient, OAuthTokenExchangeError, TokenFileStore
from gtm_mcp.core.config import GoogleSettings
from gtm_mcp.core.errors import NoAccessTokenError, NoCredentialsError, RefreshFailedError
from gtm_mcp.models.oauth import CredentialRecord

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialLifecycleManager:
    """Owns the current credentials of the running server process.

    ``initialize`` must complete before ``get_access_token`` is used: it loads
    the stored record, refreshes it when expired and writes the refreshed
    record back to the same file.
    """

    def __init__(
        self,
        *,
        google_settings: GoogleSettings,
        oauth_client: GoogleOAuthClient,
        store: TokenFileStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._google = google_settings
        self._oauth = oauth_client
        self._store = store
        self._clock = clock
        self._record: Optional[CredentialRecord] = None

    @property
    def record(self) -> Optional[CredentialRecord]:
        return self._record

    async def initialize(self) -> CredentialRecord:
        """Load the stored record and refresh it if it has expired."""
        self._google.require_client()

        try:
            record = self._store.load()
        except (OSError, ValueError) as exc:
            raise NoCredentialsError(
                self._store.path, detail=f"Stored tokens could not be read: {exc}"
            ) from exc
        if record is None:
            raise NoCredentialsError(self._store.path)

        self._record = record

        if record.is_expired(self._clock()):
            logger.info("Access token expired. Refreshing...")
            self._record = await self._refresh(record)
            logger.info("Token refreshed successfully")

        return self._record

    async def _refresh(self, record: CredentialRecord) -> CredentialRecord:
        if not record.refresh_token:
            logger.error("Stored tokens have no refresh token")
            raise RefreshFailedError(self._store.path)

        refreshed_at = self._clock()
        try:
            grant = await self._oauth.refresh_token(record.refresh_token)
        except (OAuthTokenExchangeError, httpx.HTTPError) as exc:
            logger.error("Failed to refresh token: %s", exc)
            raise RefreshFailedError(self._store.path) from exc

        refreshed = record.merged_with_refresh(grant, issued_at=refreshed_at)
        self._store.save(refreshed)
        return refreshed

    def get_access_token(self) -> str:
        """Return the current access token."""
        if self._record is None or not self._record.access_token:
            raise NoAccessTokenError()
        return self._record.access_token

    def google_credentials(self) -> Credentials:
        """Expose the current record as google-auth credentials for API clients."""
        record = self._record
        if record is None:
            raise NoAccessTokenError()
        client_id, client_secret = self._google.require_client()
        return Credentials(
            token=self.get_access_token(),
            refresh_token=record.refresh_token,
            token_uri=GoogleOAuthClient.TOKEN_URL,
            client_id=client_id,
            client_secret=client_secret,
            scopes=list(record.scopes or self._google.scopes),
        )


__all__ = ["CredentialLifecycleManager"]
