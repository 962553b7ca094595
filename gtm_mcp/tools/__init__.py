"""Tool registrars run by the local server after credentials are ready."""

from __future__ import annotations

from typing import Callable

from mcp.server.fastmcp import FastMCP

from gtm_mcp.schemas import ToolContext

from .auth_status import register_auth_status_tool

ToolRegistrar = Callable[[FastMCP, ToolContext], None]

tools: list[ToolRegistrar] = [
    register_auth_status_tool,
]

__all__ = ["ToolRegistrar", "register_auth_status_tool", "tools"]
