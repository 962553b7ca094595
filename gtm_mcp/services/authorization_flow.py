"""
Interactive OAuth authorization-code flow for a local operator.

The runner prints and opens the consent URL, waits for Google to redirect the
browser to the local callback listener, exchanges the code and writes the
credential record. Every outcome closes the listener.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from datetime import datetime, timezone
from typing import Callable, Protocol

from fastapi import FastAPI

from gtm_mcp.api import CallbackListener, FlowOutcome, create_callback_app
from gtm_mcp.clients import GoogleOAuthClient, TokenFileStore
from gtm_mcp.core.config import GoogleSettings
from gtm_mcp.core.errors import MissingRefreshTokenError
from gtm_mcp.models.oauth import AuthorizationRequest, CredentialRecord

logger = logging.getLogger(__name__)


class Listener(Protocol):
    async def start(self) -> None: ...

    async def close(self) -> None: ...


ListenerFactory = Callable[..., Listener]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthorizationFlowRunner:
    """Run one interactive authorization attempt and persist its result."""

    def __init__(
        self,
        *,
        google_settings: GoogleSettings,
        oauth_client: GoogleOAuthClient,
        store: TokenFileStore,
        timeout_seconds: float = 300.0,
        open_browser: bool = True,
        listener_factory: ListenerFactory = CallbackListener,
        browser_opener: Callable[[str], bool] = webbrowser.open,
        echo: Callable[[str], None] = print,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._google = google_settings
        self._oauth = oauth_client
        self._store = store
        self._timeout = timeout_seconds
        self._open_browser = open_browser
        self._listener_factory = listener_factory
        self._browser_opener = browser_opener
        self._echo = echo
        self._clock = clock

    async def run(self) -> CredentialRecord:
        client_id, client_secret = self._google.require_client()
        request = AuthorizationRequest(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=self._google.redirect_uri,
            scopes=self._google.scopes,
        )
        auth_url = self._oauth.build_authorization_url()

        outcome = FlowOutcome()

        async def exchange(code: str) -> CredentialRecord:
            request.code = code
            return await self._exchange(request)

        app: FastAPI = create_callback_app(
            outcome=outcome, exchange=exchange, token_path=self._store.path
        )
        listener = self._listener_factory(app, port=self._google.callback_port)
        await listener.start()
        try:
            self._echo("\n=== Google Tag Manager MCP Server Authentication ===\n")
            await self._launch_browser(auth_url)
            self._echo("If the browser doesn't open automatically, visit this URL:")
            self._echo(f"\n{auth_url}\n")
            logger.info(
                "Waiting for authentication callback on http://localhost:%d...",
                self._google.callback_port,
            )
            record = await outcome.wait(self._timeout)
        finally:
            await listener.close()

        logger.info("Tokens saved to: %s", self._store.path)
        return record

    async def _launch_browser(self, auth_url: str) -> None:
        if not self._open_browser:
            return
        self._echo("Opening browser for authentication...")
        opened = await asyncio.to_thread(self._browser_opener, auth_url)
        if not opened:
            logger.warning("Could not open browser automatically. Please open the URL manually.")

    async def _exchange(self, request: AuthorizationRequest) -> CredentialRecord:
        issued_at = self._clock()
        grant = await self._oauth.exchange_authorization_code(request.code or "")
        if not grant.refresh_token:
            raise MissingRefreshTokenError()

        record = CredentialRecord.from_grant(grant, issued_at=issued_at)
        self._store.save(record)
        return record


__all__ = ["AuthorizationFlowRunner"]
