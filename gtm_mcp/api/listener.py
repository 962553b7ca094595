"""Transient local HTTP listener for the OAuth redirect."""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Optional

import uvicorn
from fastapi import FastAPI

from gtm_mcp.core.errors import CallbackListenerError

logger = logging.getLogger(__name__)


class CallbackListener:
    """Serve the callback application on localhost until closed.

    ``close`` may be called from several code paths; only the first call
    shuts the server down.
    """

    def __init__(self, app: FastAPI, *, port: int, host: str = "localhost") -> None:
        self.host = host
        self.port = port
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level="warning",
            lifespan="off",
            timeout_graceful_shutdown=5,
        )
        self._server = uvicorn.Server(config)
        self._task: Optional[asyncio.Task[None]] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _is_port_available(self) -> bool:
        """Checks if the callback port is available."""
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((self.host, self.port))
            return True
        except OSError:
            return False

    async def start(self) -> None:
        if not self._is_port_available():
            raise CallbackListenerError(
                f"Port {self.port} is already in use. Stop the process using it "
                "or set GOOGLE_REDIRECT_URI to a different localhost port."
            )

        self._task = asyncio.create_task(self._server.serve())
        while not self._server.started:
            if self._task.done():
                raise CallbackListenerError(
                    f"Callback listener on {self.host}:{self.port} stopped during startup."
                )
            await asyncio.sleep(0.05)
        logger.debug("OAuth callback listener started on port %d", self.port)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._server.should_exit = True
        if self._task is not None:
            await self._task
        logger.debug("OAuth callback listener stopped")


__all__ = ["CallbackListener"]
