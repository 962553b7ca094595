from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from gtm_mcp.clients import OAuthTokenExchangeError, TokenFileStore
from gtm_mcp.core.config import GoogleSettings
from gtm_mcp.core.errors import (
    ConfigurationError,
    NoAccessTokenError,
    NoCredentialsError,
    RefreshFailedError,
)
from gtm_mcp.models.oauth import CredentialRecord, TokenGrant, to_epoch_millis
from gtm_mcp.services.google_tokens import CredentialLifecycleManager

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class DummyOAuthClient:
    def __init__(self, *, refreshed_token: str = "refreshed-access", rotated: str | None = None) -> None:
        self.refreshed_token = refreshed_token
        self.rotated = rotated
        self.calls: list[str] = []

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        self.calls.append(refresh_token)
        return TokenGrant(
            access_token=self.refreshed_token,
            refresh_token=self.rotated,
            scope="https://www.googleapis.com/auth/tagmanager.readonly",
            token_type="Bearer",
            expires_in=3600,
        )


class FailingOAuthClient:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.calls: list[str] = []

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        self.calls.append(refresh_token)
        raise self.exc


def _stored_record(expiry: datetime) -> CredentialRecord:
    return CredentialRecord(
        access_token="initial-token",
        refresh_token="refresh-token",
        scope="https://www.googleapis.com/auth/tagmanager.readonly",
        token_type="Bearer",
        expiry_date=to_epoch_millis(expiry),
    )


def _manager(settings: GoogleSettings, oauth_client, store: TokenFileStore) -> CredentialLifecycleManager:
    return CredentialLifecycleManager(
        google_settings=settings,
        oauth_client=oauth_client,
        store=store,
        clock=lambda: NOW,
    )


@pytest.mark.asyncio
async def test_missing_client_configuration_fails_startup(
    unconfigured_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    token_store.save(_stored_record(NOW + timedelta(hours=1)))
    manager = _manager(unconfigured_settings, DummyOAuthClient(), token_store)

    with pytest.raises(ConfigurationError):
        await manager.initialize()

    with pytest.raises(NoAccessTokenError):
        manager.get_access_token()


@pytest.mark.asyncio
async def test_missing_record_file_references_expected_path(
    google_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    manager = _manager(google_settings, DummyOAuthClient(), token_store)

    with pytest.raises(NoCredentialsError) as excinfo:
        await manager.initialize()

    assert str(token_store.path) in str(excinfo.value)
    assert excinfo.value.token_path == token_store.path
    assert not token_store.path.exists()


@pytest.mark.asyncio
async def test_corrupt_record_file_asks_for_reauthentication(
    google_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    token_store.path.write_text("{not json", encoding="utf-8")
    manager = _manager(google_settings, DummyOAuthClient(), token_store)

    with pytest.raises(NoCredentialsError):
        await manager.initialize()


@pytest.mark.asyncio
async def test_unexpired_record_is_adopted_without_refresh(
    google_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    token_store.save(_stored_record(NOW + timedelta(minutes=10)))
    before = token_store.path.read_bytes()
    oauth_client = DummyOAuthClient()
    manager = _manager(google_settings, oauth_client, token_store)

    await manager.initialize()

    assert manager.get_access_token() == "initial-token"
    assert oauth_client.calls == []
    assert token_store.path.read_bytes() == before


@pytest.mark.asyncio
async def test_expired_record_is_refreshed_and_persisted(
    google_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    token_store.save(_stored_record(NOW - timedelta(minutes=1)))
    oauth_client = DummyOAuthClient()
    manager = _manager(google_settings, oauth_client, token_store)

    record = await manager.initialize()

    assert oauth_client.calls == ["refresh-token"]
    assert manager.get_access_token() == oauth_client.refreshed_token
    assert record.expiry_date == to_epoch_millis(NOW) + 3600 * 1000

    stored = json.loads(token_store.path.read_text(encoding="utf-8"))
    assert stored["access_token"] == oauth_client.refreshed_token
    assert stored["refresh_token"] == "refresh-token"
    assert stored["expiry_date"] == record.expiry_date


@pytest.mark.asyncio
async def test_rotated_refresh_token_is_persisted(
    google_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    token_store.save(_stored_record(NOW - timedelta(minutes=1)))
    manager = _manager(google_settings, DummyOAuthClient(rotated="rotated-refresh"), token_store)

    await manager.initialize()

    stored = token_store.load()
    assert stored is not None
    assert stored.refresh_token == "rotated-refresh"


@pytest.mark.asyncio
async def test_restart_after_refresh_skips_refresh(
    google_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    token_store.save(_stored_record(NOW - timedelta(minutes=1)))
    await _manager(google_settings, DummyOAuthClient(), token_store).initialize()

    oauth_client = DummyOAuthClient(refreshed_token="should-not-be-used")
    restarted = _manager(google_settings, oauth_client, token_store)
    await restarted.initialize()

    assert oauth_client.calls == []
    assert restarted.get_access_token() == "refreshed-access"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [
        OAuthTokenExchangeError('{"error": "invalid_grant"}'),
        httpx.ConnectError("connection refused"),
    ],
)
async def test_refresh_failure_asks_to_delete_record(
    google_settings: GoogleSettings, token_store: TokenFileStore, exc: Exception
) -> None:
    token_store.save(_stored_record(NOW - timedelta(minutes=1)))
    before = token_store.path.read_bytes()
    oauth_client = FailingOAuthClient(exc)
    manager = _manager(google_settings, oauth_client, token_store)

    with pytest.raises(RefreshFailedError) as excinfo:
        await manager.initialize()

    assert str(token_store.path) in str(excinfo.value)
    assert excinfo.value.__cause__ is exc
    assert oauth_client.calls == ["refresh-token"]
    assert token_store.path.read_bytes() == before


@pytest.mark.asyncio
async def test_expired_record_without_refresh_token_fails(
    google_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    token_store.save(
        CredentialRecord(access_token="a", expiry_date=to_epoch_millis(NOW - timedelta(hours=1)))
    )
    oauth_client = DummyOAuthClient()
    manager = _manager(google_settings, oauth_client, token_store)

    with pytest.raises(RefreshFailedError):
        await manager.initialize()

    assert oauth_client.calls == []


def test_access_token_before_initialization_is_rejected(
    google_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    manager = _manager(google_settings, DummyOAuthClient(), token_store)

    with pytest.raises(NoAccessTokenError):
        manager.get_access_token()


@pytest.mark.asyncio
async def test_record_without_access_token_is_rejected_by_accessor(
    google_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    token_store.save(CredentialRecord(refresh_token="r"))
    manager = _manager(google_settings, DummyOAuthClient(), token_store)

    await manager.initialize()

    with pytest.raises(NoAccessTokenError):
        manager.get_access_token()


@pytest.mark.asyncio
async def test_google_credentials_reflect_current_record(
    google_settings: GoogleSettings, token_store: TokenFileStore
) -> None:
    token_store.save(_stored_record(NOW + timedelta(hours=1)))
    manager = _manager(google_settings, DummyOAuthClient(), token_store)
    await manager.initialize()

    credentials = manager.google_credentials()

    assert credentials.token == "initial-token"
    assert credentials.refresh_token == "refresh-token"
    assert credentials.client_id == "client"
    assert credentials.scopes == ["https://www.googleapis.com/auth/tagmanager.readonly"]
