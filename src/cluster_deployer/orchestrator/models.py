"""Data models for the orchestrator module."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union


class StepStatus(Enum):
    """步骤执行状态"""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class FailurePolicy(Enum):
    """What a stage does when one of its steps fails."""
    ABORT = "abort"               # 第一个失败即终止整个运行
    BEST_EFFORT = "best_effort"   # 记录失败并继续后续步骤（清理类阶段）


@dataclass(frozen=True)
class PlaybookCommand:
    """`ansible-playbook -i <inventory> <playbook>`"""
    playbook: str
    extra_vars: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class AdHocCommand:
    """`ansible <pattern> -i <inventory> -m <module> -a <args>`"""
    pattern: str
    module: str
    args: str
    become: bool = False
    become_user: Optional[str] = None


StepCommand = Union[PlaybookCommand, AdHocCommand]


@dataclass(frozen=True)
class Step:
    """A single external invocation inside a stage."""
    name: str
    description: str
    command: StepCommand
    is_verification: bool = False


@dataclass(frozen=True)
class Stage:
    """An ordered group of steps, built once from the stage table."""
    name: str
    title: str
    steps: Tuple[Step, ...]
    failure_policy: FailurePolicy = FailurePolicy.ABORT
    completion_message: str = ""

    @property
    def verification_step(self) -> Optional[Step]:
        for step in self.steps:
            if step.is_verification:
                return step
        return None

    def step_names(self) -> List[str]:
        return [step.name for step in self.steps]


@dataclass(frozen=True)
class ExecutionOptions:
    """Options parsed once from the command line and never mutated."""
    prompt_vault_password: bool = False
    dry_run: bool = False
    verbose: bool = False
    force: bool = False
    skip_verify: bool = False
    only_steps: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one step invocation."""
    step_name: str
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def status(self) -> StepStatus:
        return StepStatus.SUCCESS if self.succeeded else StepStatus.FAILED


@dataclass
class StageResult:
    """Aggregate outcome of one stage run."""
    stage_name: str
    results: List[ExecutionResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(result.succeeded for result in self.results)

    @property
    def failed_steps(self) -> List[ExecutionResult]:
        return [result for result in self.results if not result.succeeded]

    def to_dict(self) -> Dict[str, object]:
        return {
            "stage_name": self.stage_name,
            "succeeded": self.succeeded,
            "results": [
                {"step_name": r.step_name, "exit_code": r.exit_code, "status": r.status.value}
                for r in self.results
            ],
            "skipped": list(self.skipped),
        }
