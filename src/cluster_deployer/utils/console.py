"""Colorized status lines for the operator."""

from __future__ import annotations

from typing import IO, Optional

from rich.console import Console
from rich.text import Text

_LEVEL_STYLES = {
    "info": ("[INFO]", "bold blue"),
    "success": ("[SUCCESS]", "bold green"),
    "warning": ("[WARNING]", "bold yellow"),
    "error": ("[ERROR]", "bold red"),
    "stage": ("[STAGE]", "bold magenta"),
}


class StatusConsole:
    """Prints `[LEVEL] message` lines, one color per level.

    Messages are wrapped in `Text` so playbook paths or host patterns
    containing brackets are never parsed as rich markup.
    """

    def __init__(self, file: Optional[IO[str]] = None, no_color: bool = False) -> None:
        self._console = Console(file=file, no_color=no_color, highlight=False, soft_wrap=True)

    def status(self, level: str, message: str) -> None:
        prefix, style = _LEVEL_STYLES[level]
        self._console.print(Text.assemble((prefix, style), " ", message))

    def info(self, message: str) -> None:
        self.status("info", message)

    def success(self, message: str) -> None:
        self.status("success", message)

    def warning(self, message: str) -> None:
        self.status("warning", message)

    def error(self, message: str) -> None:
        self.status("error", message)

    def stage(self, message: str) -> None:
        self.status("stage", message)

    def line(self, message: str = "") -> None:
        """Plain, unprefixed output (summaries, usage hints)."""
        self._console.print(Text(message))
