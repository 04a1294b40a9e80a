"""Deployment orchestrator: maps commands to stage runs."""

from __future__ import annotations

import dataclasses
import logging
import shutil
import time
from typing import Callable, Dict, List, Optional, Sequence, TYPE_CHECKING

import yaml

from ..errors import PrerequisiteError, StepFailedError, UsageError
from ..interaction import CLIInteractionHandler, DestructiveActionGuard
from ..inventory import ClusterTopology, Inventory
from ..local import LocalSession
from ..vault import VaultCreator
from .models import ExecutionOptions, Stage, StageResult
from .readiness import ApiServerProbe, HostsReachableProbe, ReadinessProbe, SettleWaiter
from .stage_runner import StageRunner
from .stages import (
    DASHBOARD_TOKEN_COMMAND,
    DEPLOY_STAGES,
    PING_ALL_COMMAND,
    build_destroy_stage,
    stage_table,
)
from .step_executor import ANSIBLE_PLAYBOOK_BINARY, StepExecutor
from .summary import print_summary, summary_lines

if TYPE_CHECKING:
    from ..config import AppConfig
    from ..interaction import UserInteractionHandler
    from ..utils.console import StatusConsole

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """
    部署编排器

    Owns the stage table and runs stages through StageRunner. Every public
    command raises on failure (PrerequisiteError, StepFailedError,
    ReadinessTimeoutError, ...) and returns normally on success.
    """

    def __init__(
        self,
        config: "AppConfig",
        console: "StatusConsole",
        session: Optional[LocalSession] = None,
        interaction_handler: Optional["UserInteractionHandler"] = None,
        prog: str = "cluster-deployer",
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        self.config = config
        self.paths = config.paths
        self.console = console
        self.prog = prog
        self.which = which
        self.session = session or LocalSession(working_dir=str(self.paths.playbook_path))
        self.interaction_handler = interaction_handler or CLIInteractionHandler()

        self.executor = StepExecutor(
            session=self.session,
            inventory_file=self.paths.inventory_path,
            playbook_dir=self.paths.playbook_path,
            vault_password_file=self.paths.vault_password_path,
        )
        self.runner = StageRunner(self.executor, console)
        self.guard = DestructiveActionGuard(self.interaction_handler)
        self.settle_waiter = SettleWaiter(config.settle, console, sleep=sleep, clock=clock)
        self.stages: Dict[str, Stage] = stage_table()
        self._inventory: Optional[Inventory] = None

    # ------------------------------------------------------------------
    # Prerequisites and inventory
    # ------------------------------------------------------------------

    def check_prerequisites(self) -> None:
        self.console.info("Checking prerequisites...")

        if not self.which(ANSIBLE_PLAYBOOK_BINARY):
            raise PrerequisiteError("Ansible is not installed. Please install Ansible first.")

        if not self.paths.inventory_path.is_file():
            raise PrerequisiteError(f"Inventory file not found: {self.paths.inventory_path}")

        if not self.paths.vars_path.is_file():
            raise PrerequisiteError(
                f"Kubernetes configuration not found: {self.paths.vars_path}. "
                "Make sure you're in the correct directory."
            )

        self.console.success("Prerequisites check passed")

    @property
    def inventory(self) -> Inventory:
        if self._inventory is None:
            try:
                self._inventory = Inventory.load(self.paths.inventory_path)
            except (OSError, ValueError, yaml.YAMLError) as exc:
                raise PrerequisiteError(
                    f"Inventory file could not be read: {self.paths.inventory_path} ({exc})"
                ) from exc
        return self._inventory

    def topology(self) -> ClusterTopology:
        """Cluster layout from the inventory, or an empty layout if it cannot be read."""
        try:
            return self.inventory.topology()
        except PrerequisiteError as exc:
            self.console.warning(f"Cluster layout unknown: {exc}")
            return ClusterTopology(masters=[], workers=[], load_balancer=None)

    def check_step_selection(self, stages: Sequence[Stage], options: ExecutionOptions) -> None:
        """Reject --only names that none of `stages` contains."""
        if not options.only_steps:
            return
        available = [name for stage in stages for name in stage.step_names()]
        if not available:
            raise UsageError("--only cannot be used with this command")
        unknown = sorted(options.only_steps.difference(available))
        if unknown:
            raise UsageError(
                f"Unknown step(s) for --only: {', '.join(unknown)}. "
                f"Available: {', '.join(available)}"
            )

    # ------------------------------------------------------------------
    # Stage commands
    # ------------------------------------------------------------------

    def run_stage(self, name: str, options: ExecutionOptions) -> StageResult:
        return self.runner.run(self.stages[name], options)

    def _load_balancer_host(self) -> Optional[str]:
        return self.config.cluster.load_balancer_host or self.topology().load_balancer

    def _api_probe(self) -> ReadinessProbe:
        host = self._load_balancer_host()
        if not host:
            logger.info("No load balancer host known, waiting for node reachability instead")
            return HostsReachableProbe(self.executor)
        return ApiServerProbe.from_config(host, self.config.cluster)

    def full_deploy(self, options: ExecutionOptions) -> List[StageResult]:
        self.console.stage("Full Kubernetes Cluster Deployment")
        stage1, stage2, stage3 = DEPLOY_STAGES

        results = [self.runner.run(stage1, options)]
        self.settle_waiter.settle(
            "Waiting for nodes to settle...", HostsReachableProbe(self.executor), options
        )

        results.append(self.runner.run(stage2, options))
        self.settle_waiter.settle("Waiting for cluster to stabilize...", self._api_probe(), options)

        results.append(self.runner.run(stage3, options))

        self.console.success("Full Kubernetes deployment completed successfully!")
        lines = summary_lines(
            self.topology(),
            self.config.cluster,
            self.prog,
            load_balancer=self.config.cluster.load_balancer_host,
        )
        print_summary(self.console, lines)
        return results

    def verify(self, options: ExecutionOptions) -> StageResult:
        self.console.info("Verifying Kubernetes cluster...")
        return self.run_stage("verify", options)

    def destroy(self, options: ExecutionOptions) -> StageResult:
        """Tear down every node; raises OperationCancelled if not confirmed."""
        topology = self.topology()
        stage = build_destroy_stage([*topology.masters, *topology.workers])
        self.check_step_selection([stage], options)

        self.console.warning("This will completely destroy the Kubernetes cluster!")
        self.guard.confirm("Are you sure you want to destroy the cluster?", options)

        self.console.info("Destroying Kubernetes cluster...")
        return self.runner.run(stage, options)

    # ------------------------------------------------------------------
    # Auxiliary commands
    # ------------------------------------------------------------------

    def _run_adhoc(self, label: str, command, options: ExecutionOptions) -> None:
        result = self.executor.run_command(command, options)
        if not result.ok:
            self.console.error(f"{label} failed with exit code {result.exit_status}")
            raise StepFailedError(label, label, result.exit_status)

    def get_dashboard_token(self, options: ExecutionOptions) -> None:
        self.console.info("Getting Kubernetes Dashboard token...")
        # shell 模块在 check 模式下不会执行，令牌查询始终真实运行
        self._run_adhoc(
            "get-dashboard-token",
            DASHBOARD_TOKEN_COMMAND,
            dataclasses.replace(options, dry_run=False),
        )

    def ping(self, options: ExecutionOptions) -> None:
        self.console.info("Testing connectivity to all hosts...")
        self._run_adhoc("ping", PING_ALL_COMMAND, dataclasses.replace(options, verbose=True))
        self.console.success("All hosts reachable")

    def get_kubeconfig(self) -> None:
        self.console.info("Locating kubeconfig file...")
        kubeconfig = self.paths.kubeconfig_path
        if not kubeconfig.is_file():
            raise PrerequisiteError("Kubeconfig file not found. Run cluster initialization first.")

        self.console.success(f"Kubeconfig file is available: {kubeconfig}")
        self.console.line("To use kubectl:")
        self.console.line(f"export KUBECONFIG={kubeconfig.resolve()}")
        self.console.line("kubectl get nodes")

    def create_vault(self, options: ExecutionOptions) -> bool:
        creator = VaultCreator(
            vault_file=self.paths.vault_path,
            vault_example=self.paths.vault_example_path,
            session=self.session,
            handler=self.interaction_handler,
            console=self.console,
        )
        return creator.create(options)

    def list_stages(self) -> None:
        for stage in self.stages.values():
            self.console.line(f"{stage.name}: {stage.title} [{stage.failure_policy.value}]")
            for step in stage.steps:
                marker = " (verification)" if step.is_verification else ""
                self.console.line(f"    {step.name:<22} {step.description}{marker}")
        self.console.line("destroy: Cluster Teardown [best_effort]")
        self.console.line("    reset:<host> / cleanup:<host> for every master and worker")
