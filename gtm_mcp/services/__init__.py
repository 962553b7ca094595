"""Service layer exports."""

from .authorization_flow import AuthorizationFlowRunner
from .google_tokens import CredentialLifecycleManager

__all__ = [
    "AuthorizationFlowRunner",
    "CredentialLifecycleManager",
]
