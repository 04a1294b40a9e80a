"""Tests for readiness polling between stages."""

from unittest.mock import Mock

import pytest
import requests

from cluster_deployer.config import ClusterConfig, SettleConfig
from cluster_deployer.errors import ReadinessTimeoutError
from cluster_deployer.orchestrator import (
    ApiServerProbe,
    ExecutionOptions,
    HostsReachableProbe,
    ReadinessProbe,
    SettleWaiter,
    StepExecutor,
    wait_until_ready,
)

from conftest import FakeSession


class ScriptedProbe(ReadinessProbe):
    name = "Scripted"

    def __init__(self, answers):
        self.answers = list(answers)
        self.checks = 0

    def check(self):
        self.checks += 1
        return self.answers.pop(0) if self.answers else False


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestWaitUntilReady:
    def test_ready_immediately_does_not_sleep(self):
        clock = FakeClock()
        probe = ScriptedProbe([True])

        attempts = wait_until_ready(probe, timeout=60, interval=5, sleep=clock.sleep, clock=clock)

        assert attempts == 1
        assert clock.sleeps == []

    def test_backoff_grows_and_is_capped(self):
        clock = FakeClock()
        probe = ScriptedProbe([False, False, False, False, True])

        attempts = wait_until_ready(
            probe,
            timeout=600,
            interval=4,
            backoff=2,
            max_interval=10,
            sleep=clock.sleep,
            clock=clock,
        )

        assert attempts == 5
        assert clock.sleeps == [4, 8, 10, 10]

    def test_timeout_raises(self):
        clock = FakeClock()
        probe = ScriptedProbe([])

        with pytest.raises(ReadinessTimeoutError) as excinfo:
            wait_until_ready(probe, timeout=20, interval=5, sleep=clock.sleep, clock=clock)

        assert excinfo.value.probe_name == "Scripted"
        assert sum(clock.sleeps) == pytest.approx(20)
        assert probe.checks == 5

    def test_last_sleep_is_clipped_to_deadline(self):
        clock = FakeClock()
        probe = ScriptedProbe([])

        with pytest.raises(ReadinessTimeoutError):
            wait_until_ready(probe, timeout=7, interval=5, sleep=clock.sleep, clock=clock)

        assert clock.sleeps == [5, 2]


class TestApiServerProbe:
    def test_ready_on_200(self):
        session = Mock()
        session.get.return_value = Mock(status_code=200)
        probe = ApiServerProbe("https://lb:6443/readyz", session=session)

        assert probe.check() is True
        session.get.assert_called_once_with("https://lb:6443/readyz", verify=False, timeout=5.0)

    def test_not_ready_on_error_status(self):
        session = Mock()
        session.get.return_value = Mock(status_code=500)
        probe = ApiServerProbe("https://lb:6443/readyz", session=session)

        assert probe.check() is False

    def test_connection_error_means_not_ready(self):
        session = Mock()
        session.get.side_effect = requests.ConnectionError("refused")
        probe = ApiServerProbe("https://lb:6443/readyz", session=session)

        assert probe.check() is False

    def test_from_config(self):
        cluster = ClusterConfig(api_port=8443, ca_cert="/etc/ca.pem", probe_timeout_seconds=2)
        probe = ApiServerProbe.from_config("10.0.0.1", cluster)

        assert probe.url == "https://10.0.0.1:8443/readyz"
        assert probe.verify == "/etc/ca.pem"
        assert probe.timeout == 2


class TestHostsReachableProbe:
    def test_uses_captured_node_ping(self, tmp_path):
        session = FakeSession()
        executor = StepExecutor(session, tmp_path / "inventory.yml", tmp_path)

        assert HostsReachableProbe(executor).check() is True
        assert session.calls[0][:2] == ["ansible", "k8s_masters:k8s_workers"]
        assert session.stream_flags == [False]

    def test_unreachable_hosts(self, tmp_path):
        session = FakeSession({"-m ping": 4})
        executor = StepExecutor(session, tmp_path / "inventory.yml", tmp_path)

        assert HostsReachableProbe(executor).check() is False


class TestSettleWaiter:
    def test_sleep_mode_uses_fixed_wait(self, console):
        sleeps = []
        waiter = SettleWaiter(SettleConfig(mode="sleep", sleep_seconds=30), console, sleep=sleeps.append)
        probe = ScriptedProbe([])

        waiter.settle("Waiting...", probe, ExecutionOptions())

        assert sleeps == [30]
        assert probe.checks == 0

    def test_poll_mode_checks_probe(self, console, output):
        clock = FakeClock()
        waiter = SettleWaiter(
            SettleConfig(mode="poll", interval_seconds=1), console, sleep=clock.sleep, clock=clock
        )
        probe = ScriptedProbe([False, True])

        waiter.settle("Waiting...", probe, ExecutionOptions())

        assert probe.checks == 2
        assert "[SUCCESS] Scripted ready" in output.getvalue()

    def test_check_mode_skips_wait(self, console):
        sleeps = []
        waiter = SettleWaiter(SettleConfig(mode="sleep"), console, sleep=sleeps.append)
        probe = ScriptedProbe([])

        waiter.settle("Waiting...", probe, ExecutionOptions(dry_run=True))

        assert sleeps == []
        assert probe.checks == 0
