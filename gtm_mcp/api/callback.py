"""
OAuth redirect endpoint served while the authentication script waits.

The application exposes exactly one route, ``GET /oauth2callback``. Anything
else is answered with ``404`` by the router.
"""

from __future__ import annotations

import asyncio
import html
import logging
from http import HTTPStatus
from pathlib import Path
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI, Query
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from gtm_mcp.core.config import CALLBACK_PATH
from gtm_mcp.core.errors import (
    AuthenticationTimeoutError,
    AuthorizationDeniedError,
    CallbackListenerError,
    MissingCodeError,
)
from gtm_mcp.models.oauth import CredentialRecord

logger = logging.getLogger(__name__)

CodeExchange = Callable[[str], Awaitable[CredentialRecord]]

_SUCCESS_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <title>Authentication Successful</title>
    <style>
      body {{
        font-family: Arial, sans-serif;
        display: flex;
        justify-content: center;
        align-items: center;
        height: 100vh;
        margin: 0;
        background: #f0f0f0;
      }}
      .container {{
        background: white;
        padding: 40px;
        border-radius: 8px;
        box-shadow: 0 2px 10px rgba(0, 0, 0, 0.1);
        text-align: center;
      }}
      h1 {{ color: #4CAF50; }}
      p {{ color: #666; }}
    </style>
  </head>
  <body>
    <div class="container">
      <h1>&#10003; Authentication Successful!</h1>
      <p>You can close this window and return to the terminal.</p>
      <p>Tokens saved to: {token_path}</p>
    </div>
  </body>
</html>
"""


class FlowOutcome:
    """Result slot of one authentication attempt, settled at most once.

    The callback route and the timeout both try to settle it; whichever
    comes first wins and the other becomes a no-op. A claimed slot is
    never timed out.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[CredentialRecord] = (
            asyncio.get_running_loop().create_future()
        )
        self._claimed = False

    def claim(self) -> bool:
        """Reserve the slot for a callback request; only the first caller gets it."""
        if self._claimed or self._future.done():
            return False
        self._claimed = True
        return True

    def resolve(self, record: CredentialRecord) -> bool:
        if self._future.done():
            return False
        self._future.set_result(record)
        return True

    def fail(self, exc: BaseException) -> bool:
        if self._future.done():
            return False
        self._future.set_exception(exc)
        return True

    def done(self) -> bool:
        return self._future.done()

    async def wait(self, timeout_seconds: float) -> CredentialRecord:
        """Wait for the slot to settle, failing it with a timeout if nothing arrives.

        A callback that claimed the slot before the deadline is still
        exchanging its code; its result is awaited instead of timing out.
        """
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), timeout_seconds)
        except asyncio.TimeoutError:
            if not self._claimed:
                self.fail(AuthenticationTimeoutError(timeout_seconds))
            return await self._future


def create_callback_app(
    *,
    outcome: FlowOutcome,
    exchange: CodeExchange,
    token_path: Path,
) -> FastAPI:
    """Build the single-route application that catches the OAuth redirect."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.get(CALLBACK_PATH)
    async def oauth2callback(
        code: Optional[str] = Query(default=None),
        error: Optional[str] = Query(default=None),
    ) -> Response:
        if not outcome.claim():
            return PlainTextResponse(
                "Authentication already completed", status_code=HTTPStatus.CONFLICT
            )

        if error:
            logger.error("Google returned an OAuth error: %s", error)
            outcome.fail(AuthorizationDeniedError(error))
            return PlainTextResponse(
                f"Authorization failed: {error}", status_code=HTTPStatus.BAD_REQUEST
            )

        if not code:
            outcome.fail(MissingCodeError())
            return PlainTextResponse(
                "Missing authorization code", status_code=HTTPStatus.BAD_REQUEST
            )

        try:
            record = await exchange(code)
        except asyncio.CancelledError:
            outcome.fail(
                CallbackListenerError("Callback request was cancelled during the code exchange")
            )
            raise
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Authentication failed: %s", exc)
            outcome.fail(exc)
            return PlainTextResponse(
                "Authentication failed", status_code=HTTPStatus.INTERNAL_SERVER_ERROR
            )

        outcome.resolve(record)
        return HTMLResponse(_SUCCESS_PAGE.format(token_path=html.escape(str(token_path))))

    return app


__all__ = ["CodeExchange", "FlowOutcome", "create_callback_app"]
