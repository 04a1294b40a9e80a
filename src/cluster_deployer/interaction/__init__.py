"""Operator interaction module."""

from .guard import CONFIRMATION_PHRASE, DestructiveActionGuard
from .handler import (
    AutoResponseHandler,
    CLIInteractionHandler,
    InputType,
    InteractionRequest,
    InteractionResponse,
    UserInteractionHandler,
)

__all__ = [
    "CONFIRMATION_PHRASE",
    "DestructiveActionGuard",
    "AutoResponseHandler",
    "CLIInteractionHandler",
    "InputType",
    "InteractionRequest",
    "InteractionResponse",
    "UserInteractionHandler",
]
