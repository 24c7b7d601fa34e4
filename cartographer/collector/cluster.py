"""Live cluster resource source.

Lists every kind the dependency analyzers understand through the dynamic
client and wraps each item as a Resource. Kinds the cluster does not serve, or
that the caller may not list, are skipped.
"""

from __future__ import annotations

import logging
from typing import Any, NamedTuple

from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import (
    DynamicApiError,
    ForbiddenError,
    NotFoundError,
    ResourceNotFoundError,
)
from rich.progress import Progress
from urllib3.exceptions import HTTPError

from cartographer.errors import ClusterError
from cartographer.k8s_client import K8sClient
from cartographer.models import Resource

logger = logging.getLogger(__name__)


class ResourceType(NamedTuple):
    api_version: str
    kind: str
    cluster_scoped: bool = False


SUPPORTED_RESOURCES: tuple[ResourceType, ...] = (
    # Workloads
    ResourceType("apps/v1", "Deployment"),
    ResourceType("apps/v1", "DaemonSet"),
    ResourceType("apps/v1", "StatefulSet"),
    ResourceType("apps/v1", "ReplicaSet"),
    ResourceType("batch/v1", "Job"),
    ResourceType("batch/v1", "CronJob"),
    ResourceType("v1", "Pod"),
    # Networking
    ResourceType("v1", "Service"),
    ResourceType("networking.k8s.io/v1", "Ingress"),
    ResourceType("networking.k8s.io/v1", "NetworkPolicy"),
    # Config & Storage
    ResourceType("v1", "ConfigMap"),
    ResourceType("v1", "Secret"),
    ResourceType("v1", "PersistentVolumeClaim"),
    # RBAC
    ResourceType("rbac.authorization.k8s.io/v1", "Role"),
    ResourceType("rbac.authorization.k8s.io/v1", "ClusterRole", cluster_scoped=True),
    ResourceType("rbac.authorization.k8s.io/v1", "RoleBinding"),
    ResourceType("rbac.authorization.k8s.io/v1", "ClusterRoleBinding", cluster_scoped=True),
    ResourceType("v1", "ServiceAccount"),
    # Autoscaling & Policy
    ResourceType("autoscaling/v2", "HorizontalPodAutoscaler"),
    ResourceType("policy/v1", "PodDisruptionBudget"),
)


def fetch_resources(
    k8s: K8sClient,
    namespace: str,
    all_namespaces: bool = False,
    progress: Progress | None = None,
) -> list[Resource]:
    """List every supported resource type from the cluster.

    With ``all_namespaces`` every namespace is listed and cluster-scoped kinds
    (ClusterRole, ClusterRoleBinding) are included. For a single namespace they
    are skipped so the graph is not flooded with system roles; any that are
    referenced still show up as edge targets.
    """
    if progress:
        task_id = progress.add_task("Collecting cluster state...", total=len(SUPPORTED_RESOURCES))

    result: list[Resource] = []
    for rtype in SUPPORTED_RESOURCES:
        if progress:
            progress.update(task_id, description=f"Collecting {rtype.kind}...")
        items = _fetch_type(k8s, rtype, namespace, all_namespaces)
        result.extend(Resource.from_dict(item) for item in items)
        if progress:
            progress.advance(task_id)

    logger.info("Fetched %d resources from cluster", len(result))
    return result


def _fetch_type(
    k8s: K8sClient,
    rtype: ResourceType,
    namespace: str,
    all_namespaces: bool,
) -> list[dict[str, Any]]:
    if rtype.cluster_scoped and not all_namespaces:
        return []

    scope = None if rtype.cluster_scoped or all_namespaces else namespace
    try:
        return k8s.list_objects(rtype.api_version, rtype.kind, scope)
    except (ResourceNotFoundError, NotFoundError, ForbiddenError) as exc:
        logger.debug("Skipping unavailable or forbidden resource %s: %s", rtype.kind, exc)
        return []
    except (DynamicApiError, ApiException) as exc:
        raise ClusterError(f"failed to list {rtype.kind}: {exc}") from exc
    except HTTPError as exc:
        raise ClusterError(f"cluster unreachable while listing {rtype.kind}: {exc}") from exc
