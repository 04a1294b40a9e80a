"""Command-line interface for cluster-deployer."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config import AppConfig, load_config
from .errors import DeployerError, OperationCancelled, StepFailedError, UsageError
from .orchestrator import DeploymentOrchestrator, ExecutionOptions
from .utils.console import StatusConsole
from .utils.logging import set_verbose

logger = logging.getLogger(__name__)

PROG = "cluster-deployer"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 3
EXIT_INTERRUPTED = 130

COMMANDS = {
    "stage1": "Run Stage 1: Setup HAProxy and prepare nodes",
    "stage2": "Run Stage 2: Initialize cluster and join nodes",
    "stage3": "Run Stage 3: Install essential services",
    "full-deploy": "Complete deployment (all stages)",
    "verify": "Verify cluster health",
    "create-vault": "Create encrypted vault file",
    "get-kubeconfig": "Locate the kubeconfig file",
    "get-dashboard-token": "Get Kubernetes Dashboard token",
    "destroy": "Destroy the cluster (DANGEROUS)",
    "ping": "Test connectivity to all hosts",
    "list-stages": "Show stages and their steps",
    "help": "Show this help message",
}

# 不需要前置检查的命令
_NO_PREREQUISITES = {"help", "list-stages"}

# 各命令可供 --only 选择的阶段
_STEP_SELECTION = {
    "stage1": ("stage1",),
    "stage2": ("stage2",),
    "stage3": ("stage3",),
    "full-deploy": ("stage1", "stage2", "stage3"),
    "verify": ("verify",),
}

_EPILOG = f"""\
Examples:
    {PROG} full-deploy --vault-pass --verbose
    {PROG} stage1 --vault-pass
    {PROG} stage2 --only join-workers
    {PROG} verify
    {PROG} get-dashboard-token
"""

OrchestratorFactory = Callable[[AppConfig, StatusConsole], DeploymentOrchestrator]


@dataclass
class CLIContext:
    """Context captured from CLI arguments."""

    config: AppConfig
    options: ExecutionOptions
    console: StatusConsole


def build_parser() -> argparse.ArgumentParser:
    commands_help = "\n".join(f"  {name:<22}{text}" for name, text in COMMANDS.items())
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Deploy a highly-available Kubernetes cluster in stages with Ansible.\n\n"
        f"Commands:\n{commands_help}",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=list(COMMANDS),
        metavar="COMMAND",
        help="Command to run (see above)",
    )
    parser.add_argument(
        "--vault-pass", action="store_true", dest="vault_pass",
        help="Prompt for vault password",
    )
    parser.add_argument(
        "--check", action="store_true",
        help="Run in check mode (dry run)",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--force", action="store_true",
        help="Force operation without confirmation",
    )
    parser.add_argument(
        "--skip-verify", action="store_true", dest="skip_verify",
        help="Skip verification steps",
    )
    parser.add_argument(
        "--only", action="append", default=[], metavar="STEP",
        help="Run only the named step(s) of the selected stages (repeatable)",
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to a JSON config file overriding defaults.",
    )
    return parser


def build_options(args: argparse.Namespace) -> ExecutionOptions:
    return ExecutionOptions(
        prompt_vault_password=args.vault_pass,
        dry_run=args.check,
        verbose=args.verbose,
        force=args.force,
        skip_verify=args.skip_verify,
        only_steps=frozenset(args.only),
    )


def _default_factory(config: AppConfig, console: StatusConsole) -> DeploymentOrchestrator:
    return DeploymentOrchestrator(config=config, console=console, prog=PROG)


def dispatch_command(
    args: argparse.Namespace,
    context: CLIContext,
    orchestrator: DeploymentOrchestrator,
) -> int:
    options = context.options
    console = context.console

    if options.only_steps and args.command != "destroy":
        stages = [orchestrator.stages[name] for name in _STEP_SELECTION.get(args.command, ())]
        orchestrator.check_step_selection(stages, options)

    if args.command not in _NO_PREREQUISITES:
        orchestrator.check_prerequisites()

    if args.command in ("stage1", "stage2", "stage3"):
        orchestrator.run_stage(args.command, options)
        return EXIT_OK

    if args.command == "full-deploy":
        orchestrator.full_deploy(options)
        return EXIT_OK

    if args.command == "verify":
        orchestrator.verify(options)
        return EXIT_OK

    if args.command == "create-vault":
        orchestrator.create_vault(options)
        return EXIT_OK

    if args.command == "get-kubeconfig":
        orchestrator.get_kubeconfig()
        return EXIT_OK

    if args.command == "get-dashboard-token":
        orchestrator.get_dashboard_token(options)
        return EXIT_OK

    if args.command == "ping":
        orchestrator.ping(options)
        return EXIT_OK

    if args.command == "list-stages":
        orchestrator.list_stages()
        return EXIT_OK

    if args.command == "destroy":
        result = orchestrator.destroy(options)
        if not result.succeeded:
            failed = ", ".join(r.step_name for r in result.failed_steps)
            console.error(f"Cluster teardown incomplete, failed steps: {failed}")
            return EXIT_FAILURE
        return EXIT_OK

    raise ValueError(f"Unsupported command: {args.command}")


def run_cli(
    argv: Optional[list[str]] = None,
    orchestrator_factory: Optional[OrchestratorFactory] = None,
    console: Optional[StatusConsole] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_USAGE
    if args.command == "help":
        parser.print_help()
        return EXIT_OK

    console = console or StatusConsole()
    set_verbose(args.verbose)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        console.error(f"Invalid configuration: {exc}")
        return EXIT_FAILURE

    context = CLIContext(config=config, options=build_options(args), console=console)
    factory = orchestrator_factory or _default_factory

    try:
        orchestrator = factory(config, console)
        return dispatch_command(args, context, orchestrator)
    except OperationCancelled:
        console.info("Cluster destruction cancelled")
        return EXIT_CANCELLED
    except UsageError as exc:
        console.error(str(exc))
        return EXIT_USAGE
    except StepFailedError as exc:
        # 失败步骤已由 StageRunner / 编排器打印
        logger.debug("Command aborted: %s", exc)
        return EXIT_FAILURE
    except DeployerError as exc:
        console.error(str(exc))
        return EXIT_FAILURE
    except KeyboardInterrupt:
        console.warning("Interrupted")
        return EXIT_INTERRUPTED
