"""Stage definition table for the Kubernetes cluster deployment.

Playbook paths are relative to the playbook directory (`kubernetes/`).
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from ..inventory import MASTER_GROUP, WORKER_GROUP
from .models import AdHocCommand, FailurePolicy, PlaybookCommand, Stage, Step

CLUSTER_VERIFY_PLAYBOOK = "stage2-cluster/04-verify-cluster.yml"

STAGE1 = Stage(
    name="stage1",
    title="Stage 1: Infrastructure Preparation",
    steps=(
        Step(
            name="haproxy",
            description="Setting up HAProxy load balancer",
            command=PlaybookCommand("stage1-preparation/01-setup-haproxy.yml"),
        ),
        Step(
            name="prepare-nodes",
            description="Preparing Kubernetes nodes",
            command=PlaybookCommand("stage1-preparation/02-prepare-nodes.yml"),
        ),
    ),
    completion_message="Stage 1 completed: Infrastructure ready for Kubernetes",
)

STAGE2 = Stage(
    name="stage2",
    title="Stage 2: Cluster Initialization",
    steps=(
        Step(
            name="init-master",
            description="Initializing first master node",
            command=PlaybookCommand("stage2-cluster/01-init-first-master.yml"),
        ),
        Step(
            name="join-masters",
            description="Joining additional master nodes",
            command=PlaybookCommand("stage2-cluster/02-join-masters.yml"),
        ),
        Step(
            name="join-workers",
            description="Joining worker nodes",
            command=PlaybookCommand("stage2-cluster/03-join-workers.yml"),
        ),
        Step(
            name="verify-cluster",
            description="Verifying cluster health",
            command=PlaybookCommand(CLUSTER_VERIFY_PLAYBOOK),
            is_verification=True,
        ),
    ),
    completion_message="Stage 2 completed: Kubernetes cluster is operational",
)

STAGE3 = Stage(
    name="stage3",
    title="Stage 3: Essential Services Installation",
    steps=(
        Step(
            name="install-essentials",
            description="Installing essential services",
            command=PlaybookCommand("stage3-services/01-install-essentials.yml"),
        ),
    ),
    completion_message="Stage 3 completed: Essential services installed",
)

# `verify` 子命令：与 stage2 的校验步骤是同一个 playbook，但不受 --skip-verify 影响
VERIFY = Stage(
    name="verify",
    title="Cluster Verification",
    steps=(
        Step(
            name="cluster-verification",
            description="Cluster verification",
            command=PlaybookCommand(CLUSTER_VERIFY_PLAYBOOK),
        ),
    ),
    completion_message="Cluster verification passed",
)

DEPLOY_STAGES: Tuple[Stage, ...] = (STAGE1, STAGE2, STAGE3)

DASHBOARD_TOKEN_COMMAND = AdHocCommand(
    pattern=f"{MASTER_GROUP}[0]",
    module="shell",
    args="kubectl -n kubernetes-dashboard create token admin-user",
    become=True,
    become_user="root",
)

PING_ALL_COMMAND = AdHocCommand(pattern="all", module="ping", args="")

NODES_PING_COMMAND = AdHocCommand(
    pattern=f"{MASTER_GROUP}:{WORKER_GROUP}", module="ping", args=""
)

_RESET_ARGS = "kubeadm reset --force"
_CLEANUP_ARGS = "rm -rf /etc/kubernetes /var/lib/etcd ~/.kube"


def build_destroy_stage(hosts: Iterable[str]) -> Stage:
    """Reset and clean every node, one step per host and action.

    Runs best-effort so one unreachable host does not stop the teardown of
    the others. Without known hosts the group pattern is used instead.
    """
    targets = list(hosts) or [f"{MASTER_GROUP}:{WORKER_GROUP}"]
    steps: List[Step] = []
    for target in targets:
        steps.append(
            Step(
                name=f"reset:{target}",
                description=f"Resetting kubeadm on {target}",
                command=AdHocCommand(pattern=target, module="shell", args=_RESET_ARGS, become=True),
            )
        )
        steps.append(
            Step(
                name=f"cleanup:{target}",
                description=f"Removing cluster state from {target}",
                command=AdHocCommand(pattern=target, module="shell", args=_CLEANUP_ARGS, become=True),
            )
        )
    return Stage(
        name="destroy",
        title="Cluster Teardown",
        steps=tuple(steps),
        failure_policy=FailurePolicy.BEST_EFFORT,
        completion_message="Kubernetes cluster destroyed",
    )


def stage_table() -> Dict[str, Stage]:
    """Deploy stages and the verification stage by name, in table order."""
    return {stage.name: stage for stage in (*DEPLOY_STAGES, VERIFY)}
