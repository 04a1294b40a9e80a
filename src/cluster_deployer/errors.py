"""Exception hierarchy for cluster-deployer."""

from __future__ import annotations

from typing import Optional


class DeployerError(Exception):
    """Base class for all fatal orchestrator errors."""


class UsageError(DeployerError):
    """The command line asked for something the selected command cannot do."""


class PrerequisiteError(DeployerError):
    """A required tool or file is missing; nothing was executed."""


class MissingDependencyError(PrerequisiteError):
    """An external binary could not be launched."""

    def __init__(self, binary: str, reason: Optional[str] = None) -> None:
        self.binary = binary
        self.reason = reason
        message = f"Required tool '{binary}' could not be started"
        if reason:
            message += f": {reason}"
        message += f". Please install {binary} and make sure it is on PATH."
        super().__init__(message)


class StepFailedError(DeployerError):
    """A step exited nonzero in a stage that aborts on first failure."""

    def __init__(self, stage_name: str, step_name: str, exit_code: int) -> None:
        self.stage_name = stage_name
        self.step_name = step_name
        self.exit_code = exit_code
        super().__init__(
            f"Step '{step_name}' of stage '{stage_name}' failed with exit code {exit_code}"
        )


class ReadinessTimeoutError(DeployerError):
    """Infrastructure never became ready within the settle timeout."""

    def __init__(self, probe_name: str, timeout: float) -> None:
        self.probe_name = probe_name
        self.timeout = timeout
        super().__init__(f"{probe_name} not ready after {timeout:.0f} seconds")


class VaultError(DeployerError):
    """Vault file could not be created or encrypted."""


class OperationCancelled(Exception):
    """The operator declined a confirmation. Not an error."""
