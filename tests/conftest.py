"""Pytest configuration shared across the suite."""

from __future__ import annotations

from pathlib import Path

import pytest

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from gtm_mcp.core.config import GoogleSettings
from gtm_mcp.clients import TokenFileStore


@pytest.fixture
def google_settings() -> GoogleSettings:
    return GoogleSettings(
        GOOGLE_CLIENT_ID="client",
        GOOGLE_CLIENT_SECRET="secret",
        GOOGLE_REDIRECT_URI="http://localhost:3000/oauth2callback",
        _env_file=None,
    )


@pytest.fixture
def unconfigured_settings(monkeypatch: pytest.MonkeyPatch) -> GoogleSettings:
    monkeypatch.delenv("GOOGLE_CLIENT_ID", raising=False)
    monkeypatch.delenv("GOOGLE_CLIENT_SECRET", raising=False)
    return GoogleSettings(_env_file=None)


@pytest.fixture
def token_store(tmp_path: Path) -> TokenFileStore:
    return TokenFileStore(tmp_path / ".gtm-mcp-tokens.json")
