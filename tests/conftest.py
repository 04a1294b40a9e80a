"""Shared fixtures: a fake process session and a throwaway Ansible checkout."""

import io
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from cluster_deployer.config import AppConfig
from cluster_deployer.interaction import AutoResponseHandler
from cluster_deployer.local import LocalCommandResult
from cluster_deployer.orchestrator import DeploymentOrchestrator
from cluster_deployer.utils.console import StatusConsole

INVENTORY_YAML = """\
all:
  children:
    haproxy:
      hosts:
        lb01:
          ansible_host: 10.100.10.210
    k8s_cluster:
      children:
        k8s_masters:
          hosts:
            master01:
              ansible_host: 10.100.10.211
            master02:
              ansible_host: 10.100.10.212
            master03:
              ansible_host: 10.100.10.213
        k8s_workers:
          hosts:
            worker01:
              ansible_host: 10.100.10.221
            worker02:
              ansible_host: 10.100.10.222
"""

INVENTORY_WITH_VAULT_YAML = """\
all:
  vars:
    ansible_become_password: !vault |
      $ANSIBLE_VAULT;1.1;AES256
      62313365396662343061393464336163383764373764613633653634306231386433626436623361
  children:
    haproxy:
      hosts:
        lb01:
          ansible_host: 10.100.10.210
    k8s_masters:
      hosts:
        master01:
          ansible_host: 10.100.10.211
    k8s_workers:
      hosts:
        worker01:
          ansible_host: 10.100.10.221
"""


class FakeSession:
    """Records every argv and answers with scripted exit codes.

    `exit_codes` maps a substring of the joined command line to the exit
    status returned for it; anything unmatched exits 0.
    """

    def __init__(self, exit_codes: Optional[Dict[str, int]] = None) -> None:
        self.exit_codes = dict(exit_codes or {})
        self.calls: List[List[str]] = []
        self.stream_flags: List[bool] = []

    def run(self, argv, *, cwd=None, timeout=None, stream_output=True) -> LocalCommandResult:
        self.calls.append(list(argv))
        self.stream_flags.append(stream_output)
        command = " ".join(argv)
        status = 0
        for fragment, code in self.exit_codes.items():
            if fragment in command:
                status = code
                break
        return LocalCommandResult(command=command, exit_status=status)

    @property
    def playbooks(self) -> List[str]:
        return [argv[3] for argv in self.calls if argv[0] == "ansible-playbook"]

    @property
    def adhoc_patterns(self) -> List[str]:
        return [argv[1] for argv in self.calls if argv[0] == "ansible"]


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(output) -> StatusConsole:
    return StatusConsole(file=output, no_color=True)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def ansible_dir(tmp_path) -> Path:
    (tmp_path / "inventory.yml").write_text(INVENTORY_YAML, encoding="utf-8")
    playbooks = tmp_path / "kubernetes"
    playbooks.mkdir()
    (playbooks / "vars.yml").write_text("cluster_name: test\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def app_config(ansible_dir, tmp_path) -> AppConfig:
    config = AppConfig()
    config.paths.ansible_dir = str(ansible_dir)
    config.paths.vault_password_file = str(tmp_path / "no-such-vault-pass")
    config.paths.kubeconfig_file = str(tmp_path / "kubeconfig")
    config.settle.mode = "sleep"
    return config


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def make_orchestrator(app_config, console, fake_session, sleeps):
    """Build an orchestrator wired to the fake session and a no-op sleep."""

    def factory(answers=None, session=None, which=lambda name: f"/usr/bin/{name}"):
        return DeploymentOrchestrator(
            config=app_config,
            console=console,
            session=session or fake_session,
            interaction_handler=AutoResponseHandler(answers),
            sleep=sleeps.append,
            which=which,
        )

    return factory
