"""Default file layout of an Ansible checkout.

- <ansible_dir>/inventory.yml          # shared inventory
- <ansible_dir>/kubernetes/            # playbooks, vars.yml, vault.yml
- ./kubeconfig                         # fetched by stage 2
"""

from pathlib import Path

DEFAULT_ANSIBLE_DIR = Path(".")
DEFAULT_PLAYBOOK_DIR = Path("kubernetes")
DEFAULT_INVENTORY_FILE = Path("inventory.yml")
DEFAULT_VAULT_PASSWORD_FILE = Path("~/.ansible_vault_pass")
DEFAULT_KUBECONFIG_FILE = Path("kubeconfig")

# playbook 目录中的固定文件名
VARS_FILE_NAME = "vars.yml"
VAULT_FILE_NAME = "vault.yml"
VAULT_EXAMPLE_FILE_NAME = "vault.yml.example"


def resolve_under(base: Path, path: Path) -> Path:
    """Resolve `path` against `base` unless it is already absolute."""
    path = path.expanduser()
    if path.is_absolute():
        return path
    return base / path
