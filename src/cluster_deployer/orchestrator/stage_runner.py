"""Stage runner: executes the steps of one stage in declared order."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import StepFailedError
from .models import ExecutionOptions, FailurePolicy, Stage, StageResult, Step

if TYPE_CHECKING:
    from ..utils.console import StatusConsole
    from .step_executor import StepExecutor

logger = logging.getLogger(__name__)


class StageRunner:
    """
    Runs every step of a stage, in order.

    Under FailurePolicy.ABORT the first failing step raises StepFailedError
    and nothing after it runs. Under FailurePolicy.BEST_EFFORT failures are
    reported and the remaining steps still run.
    """

    def __init__(self, executor: "StepExecutor", console: "StatusConsole"):
        self.executor = executor
        self.console = console

    def _should_skip(self, step: Step, options: ExecutionOptions) -> bool:
        if step.is_verification and options.skip_verify:
            logger.info("Skipping verification step %s (--skip-verify)", step.name)
            return True
        if options.only_steps and step.name not in options.only_steps:
            logger.debug("Skipping step %s (not selected with --only)", step.name)
            return True
        return False

    def run(self, stage: Stage, options: ExecutionOptions) -> StageResult:
        self.console.stage(stage.title)
        if options.dry_run:
            self.console.info("Running in check mode (dry run)")

        stage_result = StageResult(stage_name=stage.name)
        for step in stage.steps:
            if self._should_skip(step, options):
                stage_result.skipped.append(step.name)
                continue

            self.console.info(step.description)
            result = self.executor.execute(step, options)
            stage_result.results.append(result)

            if result.succeeded:
                self.console.success(f"{step.description} completed successfully")
                continue

            if stage.failure_policy is FailurePolicy.ABORT:
                self.console.error(
                    f"{step.description} failed (step '{step.name}' of stage '{stage.name}', "
                    f"exit code {result.exit_code})"
                )
                raise StepFailedError(stage.name, step.name, result.exit_code)

            self.console.warning(
                f"{step.description} failed with exit code {result.exit_code}, continuing"
            )

        logger.debug("Stage result: %s", stage_result.to_dict())
        if stage_result.succeeded:
            self.console.success(stage.completion_message or f"{stage.title} completed")
        else:
            failed = ", ".join(r.step_name for r in stage_result.failed_steps)
            self.console.warning(f"{stage.title} finished with failures: {failed}")
        return stage_result
