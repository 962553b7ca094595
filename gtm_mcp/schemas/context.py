"""Context handed to tool registrars once credentials are initialized."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from gtm_mcp.services.google_tokens import CredentialLifecycleManager


class AuthProps(BaseModel):
    """Read-only identity of the local operator."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field("local-user", description="Stable identifier for the local operator.")
    name: str = "Local User"
    email: str
    client_id: str


@dataclass(frozen=True)
class ToolContext:
    """What every tool registrar receives: identity plus a token accessor."""

    props: AuthProps
    access_token: Callable[[], str]
    credentials: "CredentialLifecycleManager"


__all__ = ["AuthProps", "ToolContext"]
