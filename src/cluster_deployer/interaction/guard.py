"""Confirmation gate in front of irreversible operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import OperationCancelled
from .handler import InputType, InteractionRequest

if TYPE_CHECKING:
    from ..orchestrator.models import ExecutionOptions
    from .handler import UserInteractionHandler

CONFIRMATION_PHRASE = "DESTROY"


class DestructiveActionGuard:
    """Requires the operator to type the exact confirmation phrase unless forced."""

    def __init__(
        self,
        handler: "UserInteractionHandler",
        phrase: str = CONFIRMATION_PHRASE,
    ) -> None:
        self.handler = handler
        self.phrase = phrase

    def confirm(self, question: str, options: "ExecutionOptions") -> None:
        """Return if the action may proceed, raise OperationCancelled otherwise."""
        if options.force:
            return
        response = self.handler.ask(
            InteractionRequest(
                question=f"{question} Type '{self.phrase}' to confirm",
                input_type=InputType.TEXT,
            )
        )
        # 必须与确认短语完全一致（区分大小写，不去空白）
        if response.cancelled or response.value != self.phrase:
            raise OperationCancelled(question)
