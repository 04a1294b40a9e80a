"""Human-readable report printed after a successful full deployment."""

from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import ClusterConfig
    from ..inventory import ClusterTopology
    from ..utils.console import StatusConsole


def summary_lines(
    topology: "ClusterTopology",
    cluster: "ClusterConfig",
    prog: str,
    load_balancer: Optional[str] = None,
) -> List[str]:
    lb = load_balancer or topology.load_balancer or "<load balancer>"
    masters = len(topology.masters)
    master_note = " (HA setup)" if masters > 1 else ""

    return [
        "===================",
        "Kubernetes cluster has been successfully deployed!",
        "",
        "Cluster Configuration:",
        f"- Masters: {masters} nodes{master_note}",
        f"- Workers: {len(topology.workers)} nodes",
        f"- Load Balancer: HAProxy on {lb}",
        f"- API Endpoint: https://{lb}:{cluster.api_port}",
        "",
        "Access Information:",
        f"- Download kubeconfig: {prog} get-kubeconfig",
        f"- Get dashboard token: {prog} get-dashboard-token",
        f"- HAProxy stats: http://{lb}:{cluster.stats_port}/stats",
        "",
        "Next Steps:",
        "1. Download and configure kubectl with the kubeconfig",
        "2. Access the Kubernetes Dashboard",
        "3. Deploy your applications",
    ]


def print_summary(console: "StatusConsole", lines: List[str]) -> None:
    console.info("Deployment Summary:")
    for line in lines:
        console.line(line)
