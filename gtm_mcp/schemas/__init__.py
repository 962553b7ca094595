"""Schema exports."""

from .context import AuthProps, ToolContext

__all__ = ["AuthProps", "ToolContext"]
