"""HTTP surface of the interactive authentication flow."""

from .callback import FlowOutcome, create_callback_app
from .listener import CallbackListener

__all__ = ["CallbackListener", "FlowOutcome", "create_callback_app"]
