"""Report which identity and grant the server is running with."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from gtm_mcp.schemas import ToolContext


def describe_auth_status(context: ToolContext) -> Dict[str, Any]:
    record = context.credentials.record
    expires_at = None
    if record is not None and record.expiry_date:
        expires_at = datetime.fromtimestamp(
            record.expiry_date / 1000, tz=timezone.utc
        ).isoformat()
    return {
        "user": context.props.model_dump(),
        "scopes": list(record.scopes) if record is not None else [],
        "token_type": record.token_type if record is not None else None,
        "expires_at": expires_at,
    }


def register_auth_status_tool(server: FastMCP, context: ToolContext) -> None:
    @server.tool(
        name="auth_status",
        description="Show the Google account, granted scopes and token expiry in use.",
    )
    def auth_status() -> Dict[str, Any]:
        return describe_auth_status(context)


__all__ = ["describe_auth_status", "register_auth_status_tool"]
