"""Settle waits between full-deploy stages.

Poll mode repeatedly checks an explicit readiness signal with backoff until
a deadline; sleep mode keeps the fixed pause.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Union, TYPE_CHECKING

import requests

from ..errors import ReadinessTimeoutError
from .models import ExecutionOptions
from .stages import NODES_PING_COMMAND

if TYPE_CHECKING:
    from ..config import ClusterConfig, SettleConfig
    from ..utils.console import StatusConsole
    from .step_executor import StepExecutor

logger = logging.getLogger(__name__)


class ReadinessProbe:
    """Base class: `check()` returns True once the target is ready."""

    name = "infrastructure"

    def check(self) -> bool:
        raise NotImplementedError


class HostsReachableProbe(ReadinessProbe):
    """All master and worker nodes answer an Ansible ping."""

    name = "Cluster nodes"

    def __init__(self, executor: "StepExecutor", timeout: Optional[float] = 60.0):
        self.executor = executor
        self.timeout = timeout

    def check(self) -> bool:
        result = self.executor.run_command(
            NODES_PING_COMMAND,
            ExecutionOptions(),
            stream_output=False,
            timeout=self.timeout,
        )
        if not result.ok:
            logger.debug("Node ping not ready: %s", result.stderr or result.stdout)
        return result.ok


class ApiServerProbe(ReadinessProbe):
    """The API server behind the load balancer answers /readyz with 200."""

    name = "Kubernetes API server"

    def __init__(
        self,
        url: str,
        verify: Union[bool, str] = False,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.verify = verify
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, host: str, cluster: "ClusterConfig") -> "ApiServerProbe":
        verify: Union[bool, str] = cluster.ca_cert or cluster.verify_tls
        return cls(
            url=f"https://{host}:{cluster.api_port}/readyz",
            verify=verify,
            timeout=cluster.probe_timeout_seconds,
        )

    def check(self) -> bool:
        try:
            response = self.session.get(self.url, verify=self.verify, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.debug("API server not reachable at %s: %s", self.url, exc)
            return False
        return response.status_code == 200


def wait_until_ready(
    probe: ReadinessProbe,
    *,
    timeout: float,
    interval: float,
    backoff: float = 1.0,
    max_interval: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Poll `probe` until it reports ready; returns the number of checks made.

    Raises ReadinessTimeoutError once `timeout` seconds have passed without
    a successful check.
    """
    deadline = clock() + timeout
    attempts = 0
    delay = interval
    while True:
        attempts += 1
        if probe.check():
            logger.info("%s ready after %d check(s)", probe.name, attempts)
            return attempts
        remaining = deadline - clock()
        if remaining <= 0:
            raise ReadinessTimeoutError(probe.name, timeout)
        sleep(min(delay, remaining))
        delay = delay * backoff
        if max_interval is not None:
            delay = min(delay, max_interval)


class SettleWaiter:
    """Waits for the infrastructure of one stage before the next one starts."""

    def __init__(
        self,
        settings: "SettleConfig",
        console: "StatusConsole",
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.console = console
        self.sleep = sleep
        self.clock = clock

    def settle(self, message: str, probe: ReadinessProbe, options: ExecutionOptions) -> None:
        self.console.info(message)
        if options.dry_run:
            # check 模式下没有真正修改任何主机
            self.console.info("Check mode: skipping settle wait")
            return

        if self.settings.mode == "sleep":
            self.sleep(self.settings.sleep_seconds)
            return

        wait_until_ready(
            probe,
            timeout=self.settings.timeout_seconds,
            interval=self.settings.interval_seconds,
            backoff=self.settings.backoff,
            max_interval=self.settings.max_interval_seconds,
            sleep=self.sleep,
            clock=self.clock,
        )
        self.console.success(f"{probe.name} ready")
