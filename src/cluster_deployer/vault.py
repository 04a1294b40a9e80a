"""Creation of the encrypted `vault.yml` for the cluster playbooks."""

from __future__ import annotations

import base64
import logging
import secrets
import shutil
import string
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, TYPE_CHECKING

from .errors import VaultError
from .interaction import InputType, InteractionRequest

if TYPE_CHECKING:
    from .interaction import UserInteractionHandler
    from .local import LocalSession
    from .orchestrator.models import ExecutionOptions
    from .utils.console import StatusConsole

logger = logging.getLogger(__name__)

ANSIBLE_VAULT_BINARY = "ansible-vault"

_ALPHANUMERIC = string.ascii_letters + string.digits


def random_password(length: int) -> str:
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def bootstrap_token() -> str:
    """kubeadm bootstrap token, `[0-9a-f]{6}.[0-9a-f]{16}`."""
    return f"{secrets.token_hex(3)}.{secrets.token_hex(8)}"


def encryption_key() -> str:
    """Base64 of 32 random bytes, as used by etcd encryption at rest."""
    return base64.b64encode(secrets.token_bytes(32)).decode("ascii")


@dataclass
class VaultCredentials:
    """Generated secrets, keyed by the placeholder they replace."""

    haproxy_stats_password: str
    admin_password: str
    bootstrap_token: str
    ca_key_passphrase: str
    etcd_encryption_key: str

    @classmethod
    def generate(cls) -> "VaultCredentials":
        return cls(
            haproxy_stats_password=random_password(24),
            admin_password=random_password(24),
            bootstrap_token=bootstrap_token(),
            ca_key_passphrase=random_password(32),
            etcd_encryption_key=encryption_key(),
        )

    def replacements(self) -> Dict[str, str]:
        return {
            "your-strong-haproxy-stats-password": self.haproxy_stats_password,
            "your-strong-k8s-admin-password": self.admin_password,
            "your-bootstrap-token-here": self.bootstrap_token,
            "your-ca-key-passphrase": self.ca_key_passphrase,
            "your-etcd-encryption-key-here": self.etcd_encryption_key,
        }


class VaultCreator:
    """Copies vault.yml.example, fills in generated secrets and encrypts it."""

    def __init__(
        self,
        vault_file: Path,
        vault_example: Path,
        session: "LocalSession",
        handler: "UserInteractionHandler",
        console: "StatusConsole",
    ):
        self.vault_file = vault_file
        self.vault_example = vault_example
        self.session = session
        self.handler = handler
        self.console = console

    def _confirm_overwrite(self, options: "ExecutionOptions") -> bool:
        self.console.warning(f"Vault file already exists: {self.vault_file}")
        if options.force:
            return True
        response = self.handler.ask(
            InteractionRequest(
                question="Do you want to overwrite it?",
                input_type=InputType.CONFIRM,
                default="n",
            )
        )
        return response.confirmed

    def create(self, options: "ExecutionOptions") -> bool:
        """Create and encrypt the vault. Returns False if the operator declined."""
        self.console.info("Creating vault file...")

        if self.vault_file.exists() and not self._confirm_overwrite(options):
            self.console.info("Vault creation cancelled")
            return False

        if not self.vault_example.is_file():
            raise VaultError(f"Vault example file not found: {self.vault_example}")

        shutil.copyfile(self.vault_example, self.vault_file)

        self.console.info("Generating secure passwords...")
        credentials = VaultCredentials.generate()
        content = self.vault_file.read_text(encoding="utf-8")
        for placeholder, value in credentials.replacements().items():
            if placeholder not in content:
                logger.debug("Placeholder %s not present in %s", placeholder, self.vault_example)
            content = content.replace(placeholder, value)
        self.vault_file.write_text(content, encoding="utf-8")

        self.console.info("Encrypting vault file...")
        result = self.session.run(
            [ANSIBLE_VAULT_BINARY, "encrypt", str(self.vault_file)],
            cwd=str(self.vault_file.parent),
        )
        if not result.ok:
            raise VaultError(
                f"ansible-vault encrypt failed with exit code {result.exit_status}; "
                f"{self.vault_file} is left unencrypted"
            )

        self.console.success(f"Vault file created and encrypted: {self.vault_file}")
        self.console.info("Generated credentials:")
        self.console.line(f"  - HAProxy Stats Password: {credentials.haproxy_stats_password}")
        self.console.line(f"  - K8s Admin Password: {credentials.admin_password}")
        self.console.line(f"  - Bootstrap Token: {credentials.bootstrap_token}")
        self.console.warning("Save these credentials securely!")
        return True
