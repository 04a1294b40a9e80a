"""Orchestrator module for staged cluster deployment.

- Stage/Step: the static stage definition table (stages.py)
- StepExecutor: runs one step as an Ansible child process
- StageRunner: runs the steps of a stage under its failure policy
- SettleWaiter: readiness waits between full-deploy stages
- DeploymentOrchestrator: maps commands to stage runs
"""

from .models import (
    AdHocCommand,
    ExecutionOptions,
    ExecutionResult,
    FailurePolicy,
    PlaybookCommand,
    Stage,
    StageResult,
    Step,
    StepStatus,
)
from .orchestrator import DeploymentOrchestrator
from .readiness import ApiServerProbe, HostsReachableProbe, ReadinessProbe, SettleWaiter, wait_until_ready
from .stage_runner import StageRunner
from .step_executor import StepExecutor

__all__ = [
    "AdHocCommand",
    "ExecutionOptions",
    "ExecutionResult",
    "FailurePolicy",
    "PlaybookCommand",
    "Stage",
    "StageResult",
    "Step",
    "StepStatus",
    "DeploymentOrchestrator",
    "ApiServerProbe",
    "HostsReachableProbe",
    "ReadinessProbe",
    "SettleWaiter",
    "wait_until_ready",
    "StageRunner",
    "StepExecutor",
]
