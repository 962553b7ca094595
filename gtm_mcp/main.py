"""
Local stdio entrypoint for the Google Tag Manager MCP server.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Iterable, Optional

from mcp.server.fastmcp import FastMCP

from gtm_mcp.core.config import AppSettings, get_settings
from gtm_mcp.core.errors import GTMAuthError
from gtm_mcp.core.logging import configure_logging
from gtm_mcp.dependencies import get_credential_manager
from gtm_mcp.schemas import AuthProps, ToolContext
from gtm_mcp.services import CredentialLifecycleManager
from gtm_mcp.tools import ToolRegistrar, tools

logger = logging.getLogger(__name__)

SERVER_NAME = "google-tag-manager-mcp-server"
SERVER_VERSION = "0.1.0"


class LocalServer:
    """Initialize credentials, register tools, then serve over stdio."""

    def __init__(
        self,
        settings: AppSettings,
        credentials: CredentialLifecycleManager,
        registrars: Optional[Iterable[ToolRegistrar]] = None,
    ) -> None:
        self._settings = settings
        self._credentials = credentials
        self._registrars = list(tools if registrars is None else registrars)
        self.server = FastMCP(SERVER_NAME)
        self.registered: list[ToolRegistrar] = []

    async def init(self) -> ToolContext:
        """Credentials are fully initialized before any tool is registered."""
        await self._credentials.initialize()

        client_id, _ = self._settings.google.require_client()
        context = ToolContext(
            props=AuthProps(email=self._settings.google.user_email, client_id=client_id),
            access_token=self._credentials.get_access_token,
            credentials=self._credentials,
        )
        # Fail fast if initialization left no usable token.
        context.access_token()

        for register in self._registrars:
            try:
                register(self.server, context)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Error registering tool %s", getattr(register, "__name__", register))
                continue
            self.registered.append(register)

        logger.info("Google Tag Manager MCP Server initialized successfully")
        logger.info("Available tools registered: %d", len(self.registered))
        return context

    async def run(self) -> None:
        logger.info("Server running on stdio")
        await self.server.run_stdio_async()


async def _serve(settings: AppSettings) -> None:
    server = LocalServer(settings, get_credential_manager())
    await server.init()
    await server.run()


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        asyncio.run(_serve(settings))
    except GTMAuthError as exc:
        logger.error("Failed to start server: %s", exc)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
