"""Operator interaction: prompts and confirmations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class InputType(str, Enum):
    """Type of user input expected."""
    TEXT = "text"           # 自由文本输入（如确认短语）
    CONFIRM = "confirm"     # 是/否确认


@dataclass
class InteractionRequest:
    """A question put to the operator."""

    question: str
    input_type: InputType = InputType.CONFIRM
    default: Optional[str] = None

    def format_prompt(self) -> str:
        if self.input_type == InputType.CONFIRM:
            hint = "(Y/n)" if (self.default or "").lower() == "y" else "(y/N)"
            return f"{self.question} {hint}: "
        return f"{self.question}: "


@dataclass
class InteractionResponse:
    """Operator's answer."""

    value: str
    cancelled: bool = False

    @property
    def confirmed(self) -> bool:
        return not self.cancelled and self.value.strip().lower() in ("y", "yes")

    @classmethod
    def cancelled_response(cls) -> "InteractionResponse":
        return cls(value="", cancelled=True)


class UserInteractionHandler(ABC):
    """Abstract base class for handling operator interactions."""

    @abstractmethod
    def ask(self, request: InteractionRequest) -> InteractionResponse:
        """Present a request and return the operator's response."""


class CLIInteractionHandler(UserInteractionHandler):
    """Reads answers from the terminal."""

    def __init__(self, input_func: Callable[[str], str] = input) -> None:
        self._input = input_func

    def ask(self, request: InteractionRequest) -> InteractionResponse:
        try:
            value = self._input(request.format_prompt())
        except (KeyboardInterrupt, EOFError):
            print()
            return InteractionResponse.cancelled_response()
        if not value and request.default is not None:
            value = request.default
        return InteractionResponse(value=value)


class AutoResponseHandler(UserInteractionHandler):
    """Answers from a fixed script; used for non-interactive runs and tests."""

    def __init__(self, answers: Optional[List[str]] = None) -> None:
        self.answers = list(answers or [])
        self.requests: List[InteractionRequest] = []

    def ask(self, request: InteractionRequest) -> InteractionResponse:
        self.requests.append(request)
        if not self.answers:
            logger.debug("No scripted answer for %r, cancelling", request.question)
            return InteractionResponse.cancelled_response()
        return InteractionResponse(value=self.answers.pop(0))
