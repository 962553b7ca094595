"""
Domain models for OAuth token persistence.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def to_epoch_millis(instant: datetime) -> int:
    """Convert an aware datetime into milliseconds since the epoch."""
    return int(instant.timestamp() * 1000)


class TokenGrant(BaseModel):
    """Token endpoint response for an authorization-code or refresh exchange."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: Optional[str] = None
    scope: str = ""
    token_type: str = "Bearer"
    expires_in: int


class CredentialRecord(BaseModel):
    """The single credential record persisted to the token file."""

    model_config = ConfigDict(extra="ignore")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    scope: str = ""
    token_type: str = "Bearer"
    expiry_date: Optional[int] = Field(
        None, description="Absolute expiry, milliseconds since the epoch."
    )

    @classmethod
    def from_grant(cls, grant: TokenGrant, *, issued_at: datetime) -> "CredentialRecord":
        """Build a record whose expiry is ``issued_at`` plus the granted lifetime."""
        return cls(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            scope=grant.scope,
            token_type=grant.token_type,
            expiry_date=to_epoch_millis(issued_at) + grant.expires_in * 1000,
        )

    def merged_with_refresh(
        self, grant: TokenGrant, *, issued_at: datetime
    ) -> "CredentialRecord":
        """Apply a refresh response, keeping the stored refresh token if none was rotated in."""
        refreshed = CredentialRecord.from_grant(grant, issued_at=issued_at)
        return refreshed.model_copy(
            update={
                "refresh_token": grant.refresh_token or self.refresh_token,
                "scope": grant.scope or self.scope,
            }
        )

    def is_expired(self, now: datetime) -> bool:
        # A record without an expiry is taken at face value.
        if not self.expiry_date:
            return False
        return self.expiry_date <= to_epoch_millis(now)

    @property
    def scopes(self) -> tuple[str, ...]:
        return tuple(self.scope.split())


class AuthorizationRequest(BaseModel):
    """In-memory context of one interactive authorization attempt."""

    client_id: str
    client_secret: str
    redirect_uri: str
    scopes: tuple[str, ...]
    code: Optional[str] = None


__all__ = ["AuthorizationRequest", "CredentialRecord", "TokenGrant", "to_epoch_millis"]
