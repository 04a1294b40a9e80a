"""Configuration loading utilities for cluster-deployer."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from . import paths

# Load .env file if it exists
load_dotenv()

_DEFAULT_CONFIG_PATH = Path("config/default_config.json")

SETTLE_MODES = ("poll", "sleep")


@dataclass
class PathsConfig:
    """Location of the Ansible checkout and the files inside it."""

    ansible_dir: str = str(paths.DEFAULT_ANSIBLE_DIR)
    playbook_dir: str = str(paths.DEFAULT_PLAYBOOK_DIR)      # 相对于 ansible_dir
    inventory_file: str = str(paths.DEFAULT_INVENTORY_FILE)  # 相对于 ansible_dir
    vault_password_file: Optional[str] = str(paths.DEFAULT_VAULT_PASSWORD_FILE)
    kubeconfig_file: str = str(paths.DEFAULT_KUBECONFIG_FILE)  # 相对于当前目录

    @property
    def ansible_path(self) -> Path:
        return Path(self.ansible_dir).expanduser()

    @property
    def playbook_path(self) -> Path:
        return paths.resolve_under(self.ansible_path, Path(self.playbook_dir))

    @property
    def inventory_path(self) -> Path:
        return paths.resolve_under(self.ansible_path, Path(self.inventory_file))

    @property
    def vars_path(self) -> Path:
        return self.playbook_path / paths.VARS_FILE_NAME

    @property
    def vault_path(self) -> Path:
        return self.playbook_path / paths.VAULT_FILE_NAME

    @property
    def vault_example_path(self) -> Path:
        return self.playbook_path / paths.VAULT_EXAMPLE_FILE_NAME

    @property
    def vault_password_path(self) -> Optional[Path]:
        if not self.vault_password_file:
            return None
        return Path(self.vault_password_file).expanduser()

    @property
    def kubeconfig_path(self) -> Path:
        return Path(self.kubeconfig_file).expanduser()


@dataclass
class SettleConfig:
    """How full-deploy waits between stages."""

    mode: str = "poll"                 # "poll" | "sleep"
    sleep_seconds: float = 30.0        # 仅用于 sleep 模式
    timeout_seconds: float = 600.0     # poll 模式的总超时
    interval_seconds: float = 5.0      # 首次轮询间隔
    backoff: float = 1.5               # 间隔增长倍数
    max_interval_seconds: float = 30.0


@dataclass
class ClusterConfig:
    """Cluster endpoints used for readiness checks and the summary."""

    load_balancer_host: Optional[str] = None  # 为空时取 inventory 中 haproxy 组的第一台主机
    api_port: int = 6443
    stats_port: int = 8404
    verify_tls: bool = False
    ca_cert: Optional[str] = None
    probe_timeout_seconds: float = 5.0


@dataclass
class AppConfig:
    """Top-level configuration."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    settle: SettleConfig = field(default_factory=SettleConfig)
    cluster: ClusterConfig = field(default_factory=ClusterConfig)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        config = cls(
            paths=_build_section(PathsConfig, "paths", payload),
            settle=_build_section(SettleConfig, "settle", payload),
            cluster=_build_section(ClusterConfig, "cluster", payload),
        )
        _validate(config)
        return config


def _strip_comments(section: Dict[str, Any]) -> Dict[str, Any]:
    # 过滤掉以下划线开头的注释字段
    return {k: v for k, v in section.items() if not k.startswith("_")}


def _build_section(section_cls, name: str, payload: Dict[str, Any]):
    section = _strip_comments(payload.get(name, {}) or {})
    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ValueError(f"Unknown key(s) in '{name}' section: {', '.join(unknown)}")
    return section_cls(**{**section_cls().__dict__, **section})


def _validate(config: AppConfig) -> None:
    if config.settle.mode not in SETTLE_MODES:
        raise ValueError(
            f"Invalid settle mode '{config.settle.mode}', expected one of: {', '.join(SETTLE_MODES)}"
        )


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from `path`, the default location, or built-in defaults.

    An explicit `path` must exist. Environment variables take priority over the file:
    - CLUSTER_DEPLOYER_ANSIBLE_DIR: Ansible checkout directory
    - CLUSTER_DEPLOYER_INVENTORY: inventory file
    - CLUSTER_DEPLOYER_VAULT_PASSWORD_FILE: vault password file
    - CLUSTER_DEPLOYER_SETTLE_MODE: "poll" or "sleep"
    - CLUSTER_DEPLOYER_LB_HOST: load balancer host
    """

    if path and not Path(path).is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    candidate_paths = []
    if path:
        candidate_paths.append(Path(path))
    candidate_paths.append(_DEFAULT_CONFIG_PATH)

    config = AppConfig()
    for candidate in candidate_paths:
        if candidate.is_file():
            with candidate.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            config = AppConfig.from_dict(data)
            break

    env_ansible_dir = os.getenv("CLUSTER_DEPLOYER_ANSIBLE_DIR")
    if env_ansible_dir:
        config.paths.ansible_dir = env_ansible_dir

    env_inventory = os.getenv("CLUSTER_DEPLOYER_INVENTORY")
    if env_inventory:
        config.paths.inventory_file = env_inventory

    env_vault_password_file = os.getenv("CLUSTER_DEPLOYER_VAULT_PASSWORD_FILE")
    if env_vault_password_file:
        config.paths.vault_password_file = env_vault_password_file

    env_settle_mode = os.getenv("CLUSTER_DEPLOYER_SETTLE_MODE")
    if env_settle_mode:
        config.settle.mode = env_settle_mode.lower()

    env_lb_host = os.getenv("CLUSTER_DEPLOYER_LB_HOST")
    if env_lb_host:
        config.cluster.load_balancer_host = env_lb_host

    _validate(config)
    return config
