"""Local execution module: runs Ansible binaries on this machine."""

from .session import LocalSession, LocalCommandResult

__all__ = ["LocalSession", "LocalCommandResult"]
