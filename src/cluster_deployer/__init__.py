"""Staged Kubernetes cluster deployment driven by Ansible playbooks."""

__version__ = "0.1.0"
