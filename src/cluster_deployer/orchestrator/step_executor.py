"""Step executor: runs a single step as an Ansible child process."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from .models import AdHocCommand, ExecutionOptions, ExecutionResult, PlaybookCommand, Step, StepCommand

if TYPE_CHECKING:
    from ..local import LocalCommandResult, LocalSession

logger = logging.getLogger(__name__)

ANSIBLE_PLAYBOOK_BINARY = "ansible-playbook"
ANSIBLE_BINARY = "ansible"


class StepExecutor:
    """
    步骤执行器

    Turns a Step into an argv (base invocation plus option-derived flags),
    runs it with inherited output and reports the exit code. A nonzero exit
    code is returned, not raised; launch failures raise
    MissingDependencyError from the session.
    """

    def __init__(
        self,
        session: "LocalSession",
        inventory_file: Path,
        playbook_dir: Path,
        vault_password_file: Optional[Path] = None,
    ):
        self.session = session
        self.inventory_file = inventory_file
        self.playbook_dir = playbook_dir
        self.vault_password_file = vault_password_file

    def build_command(self, command: StepCommand, options: ExecutionOptions) -> List[str]:
        if isinstance(command, PlaybookCommand):
            argv = [ANSIBLE_PLAYBOOK_BINARY, "-i", str(self.inventory_file), command.playbook]
            for key, value in command.extra_vars:
                argv += ["-e", f"{key}={value}"]
        elif isinstance(command, AdHocCommand):
            argv = [ANSIBLE_BINARY, command.pattern, "-i", str(self.inventory_file), "-m", command.module]
            if command.args:
                argv += ["-a", command.args]
            if command.become:
                argv.append("-b")
            if command.become_user:
                argv.append(f"--become-user={command.become_user}")
        else:
            raise TypeError(f"Unsupported step command: {command!r}")

        argv += self._option_flags(options)
        return argv

    def _option_flags(self, options: ExecutionOptions) -> List[str]:
        flags: List[str] = []
        if options.prompt_vault_password:
            flags.append("--ask-vault-pass")
        elif self.vault_password_file is not None and self.vault_password_file.is_file():
            flags += ["--vault-password-file", str(self.vault_password_file)]
        if options.dry_run:
            flags.append("--check")
        if options.verbose:
            flags.append("-v")
        return flags

    def run_command(
        self,
        command: StepCommand,
        options: ExecutionOptions,
        *,
        stream_output: bool = True,
        timeout: Optional[float] = None,
    ) -> "LocalCommandResult":
        argv = self.build_command(command, options)
        logger.info("Executing: %s", " ".join(argv))
        return self.session.run(
            argv,
            cwd=str(self.playbook_dir),
            stream_output=stream_output,
            timeout=timeout,
        )

    def execute(self, step: Step, options: ExecutionOptions) -> ExecutionResult:
        result = self.run_command(step.command, options)
        logger.debug("Step %s exited with %d", step.name, result.exit_status)
        return ExecutionResult(step_name=step.name, exit_code=result.exit_status)
