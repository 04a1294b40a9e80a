"""Shared helpers: logging setup and operator-facing console output."""

from .console import StatusConsole
from .logging import get_logger, set_verbose

__all__ = ["StatusConsole", "get_logger", "set_verbose"]
