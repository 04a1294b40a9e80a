"""Local command execution session."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from ..errors import MissingDependencyError, PrerequisiteError

logger = logging.getLogger(__name__)


@dataclass
class LocalCommandResult:
    """Result of executing a local command."""
    command: str
    exit_status: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class LocalSession:
    """
    Local command execution session.

    Commands are argv lists, never shell strings. In streaming mode the child
    inherits this process's stdout/stderr so Ansible progress is visible in
    real time; otherwise output is captured.
    """

    def __init__(self, working_dir: Optional[str] = None) -> None:
        """
        Initialize local session.

        Args:
            working_dir: Working directory for commands. Defaults to the current directory.
        """
        self.working_dir = working_dir or os.getcwd()

    def __enter__(self) -> "LocalSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        pass

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
        stream_output: bool = True,
    ) -> LocalCommandResult:
        """
        Execute a command locally and wait for it to exit.

        Args:
            argv: Program and arguments
            cwd: Working directory, defaults to the session's
            timeout: Total timeout in seconds (captured mode only)
            stream_output: Inherit stdout/stderr instead of capturing them

        Returns:
            LocalCommandResult with the exit status (and output when captured)

        Raises:
            MissingDependencyError: the program could not be launched
        """
        command = shlex.join(argv)
        workdir = cwd or self.working_dir
        if not os.path.isdir(workdir):
            raise PrerequisiteError(f"Working directory not found: {workdir}")
        logger.debug("Running in %s: %s", workdir, command)

        try:
            if stream_output:
                completed = subprocess.run(list(argv), cwd=workdir, check=False)
                return LocalCommandResult(command=command, exit_status=completed.returncode)

            completed = subprocess.run(
                list(argv),
                cwd=workdir,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise MissingDependencyError(argv[0], "not found") from exc
        except PermissionError as exc:
            raise MissingDependencyError(argv[0], "permission denied") from exc
        except subprocess.TimeoutExpired:
            return LocalCommandResult(
                command=command,
                exit_status=-1,
                stderr=f"Command timed out after {timeout} seconds",
            )

        return LocalCommandResult(
            command=command,
            exit_status=completed.returncode,
            stdout=completed.stdout.strip(),
            stderr=completed.stderr.strip(),
        )
