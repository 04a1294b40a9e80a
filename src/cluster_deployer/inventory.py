"""Read-only view of an Ansible YAML inventory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

MASTER_GROUP = "k8s_masters"
WORKER_GROUP = "k8s_workers"
LOAD_BALANCER_GROUP = "haproxy"


@dataclass
class ClusterTopology:
    """Host counts and load balancer, for the deployment summary."""

    masters: List[str]
    workers: List[str]
    load_balancer: Optional[str]


@dataclass(frozen=True)
class TaggedValue:
    """A value carrying a local YAML tag such as `!vault`, kept unparsed."""

    tag: str
    value: Any

    def __str__(self) -> str:
        return str(self.value)


def _construct_tagged(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> TaggedValue:
    tag = "!" + tag_suffix
    if isinstance(node, yaml.MappingNode):
        return TaggedValue(tag, loader.construct_mapping(node, deep=True))
    if isinstance(node, yaml.SequenceNode):
        return TaggedValue(tag, loader.construct_sequence(node, deep=True))
    return TaggedValue(tag, loader.construct_scalar(node))


class InventoryLoader(yaml.SafeLoader):
    """SafeLoader that accepts Ansible tags (`!vault`, `!unsafe`, ...)."""


InventoryLoader.add_multi_constructor("!", _construct_tagged)


class Inventory:
    """
    Parses a YAML inventory.

    Groups declared at the top level next to (or instead of) `all:` are
    treated as children of `all`. Groups are looked up anywhere under
    `children`; hosts are returned in declaration order, with hosts of
    nested child groups following the group's own hosts.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        groups = dict(data or {})
        root = dict(groups.pop("all", None) or {})
        if groups:
            root["children"] = {**(root.get("children") or {}), **groups}
        self._root = root
        self._host_vars: Dict[str, Dict[str, Any]] = {}
        self._collect_host_vars(self._root)

    @classmethod
    def load(cls, path: Path) -> "Inventory":
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.load(handle, Loader=InventoryLoader) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Inventory {path} is not a YAML mapping")
        return cls(data)

    def _collect_host_vars(self, node: Dict[str, Any]) -> None:
        for host, host_vars in (node.get("hosts") or {}).items():
            self._host_vars.setdefault(host, {}).update(host_vars or {})
        for child in (node.get("children") or {}).values():
            self._collect_host_vars(child or {})

    def _find_group(self, node: Dict[str, Any], group: str) -> Optional[Dict[str, Any]]:
        children = node.get("children") or {}
        if group in children:
            return children[group] or {}
        for child in children.values():
            found = self._find_group(child or {}, group)
            if found is not None:
                return found
        return None

    def _group_hosts(self, node: Dict[str, Any]) -> List[str]:
        hosts = list((node.get("hosts") or {}).keys())
        for child in (node.get("children") or {}).values():
            for host in self._group_hosts(child or {}):
                if host not in hosts:
                    hosts.append(host)
        return hosts

    def hosts(self, group: str = "all") -> List[str]:
        if group == "all":
            return self._group_hosts(self._root)
        node = self._find_group(self._root, group)
        if node is None:
            logger.debug("Group %s not found in inventory", group)
            return []
        return self._group_hosts(node)

    def host_address(self, host: str) -> str:
        return str(self._host_vars.get(host, {}).get("ansible_host", host))

    def topology(self) -> ClusterTopology:
        lb_hosts = self.hosts(LOAD_BALANCER_GROUP)
        return ClusterTopology(
            masters=self.hosts(MASTER_GROUP),
            workers=self.hosts(WORKER_GROUP),
            load_balancer=self.host_address(lb_hosts[0]) if lb_hosts else None,
        )
