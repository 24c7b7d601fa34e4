"""Data models for the dependency mapper.

Core concepts:
- Resource: read-only view over one decoded Kubernetes manifest
- Edge: a reasoned reference from a parent resource to a child
- DependencyGraph: parent id -> ordered, deduplicated outgoing edges
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cartographer.fields import Lookup, nested_map, nested_slice, string_map

POD_OR_CONTROLLER_KINDS = frozenset(
    {"Pod", "Deployment", "DaemonSet", "StatefulSet", "ReplicaSet", "Job", "CronJob"}
)


class Reason(str, Enum):
    """Why a parent resource points at a child."""

    OWNER_REF = "ownerRef"  # owner -> owned object
    SELECTOR = "selector"  # Service -> pods/controllers
    POD_SELECTOR = "podSelector"  # NetworkPolicy -> pods/controllers
    PDB_SELECTOR = "pdbSelector"  # PodDisruptionBudget -> pods/controllers
    INGRESS_BACKEND = "ingressBackend"  # Ingress -> Service
    TLS_SECRET = "tlsSecret"  # Ingress -> Secret
    SCALE_TARGET_REF = "scaleTargetRef"  # HPA -> workload
    SECRET_REF = "secretRef"  # pod template -> Secret
    CONFIG_MAP_REF = "configMapRef"  # pod template -> ConfigMap
    PVC_REF = "pvcRef"  # pod template -> PersistentVolumeClaim
    SERVICE_ACCOUNT_NAME = "serviceAccountName"  # pod template -> ServiceAccount


# ---------------------------------------------------------------------------
# Resource: a single decoded manifest
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OwnerReference:
    kind: str
    name: str

    @property
    def id(self) -> str:
        return f"{self.kind}/{self.name}"


@dataclass(frozen=True, eq=False)
class Resource:
    """Read-only view over a decoded manifest.

    Identity is ``Kind/Name``. The namespace is deliberately left out, so two
    objects with the same kind and name in different namespaces collapse into
    one graph node.
    """

    obj: Mapping[str, Any]

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> Resource:
        return cls(obj=obj)

    @property
    def kind(self) -> str:
        kind = self.obj.get("kind")
        return kind if isinstance(kind, str) else ""

    @property
    def metadata(self) -> Mapping[str, Any]:
        meta, found, _ = self.map_field("metadata")
        return meta if found else {}

    @property
    def name(self) -> str:
        name = self.metadata.get("name")
        return name if isinstance(name, str) else ""

    @property
    def namespace(self) -> str:
        ns = self.metadata.get("namespace")
        return ns if isinstance(ns, str) else ""

    @property
    def labels(self) -> dict[str, str]:
        return string_map(self.metadata.get("labels"))

    @property
    def owner_references(self) -> list[OwnerReference]:
        refs, found, _ = self.list_field("metadata", "ownerReferences")
        if not found:
            return []
        owners = []
        for ref in refs:
            if not isinstance(ref, Mapping):
                continue
            kind, name = ref.get("kind"), ref.get("name")
            if isinstance(kind, str) and kind and isinstance(name, str) and name:
                owners.append(OwnerReference(kind, name))
        return owners

    @property
    def id(self) -> str:
        return f"{self.kind}/{self.name}"

    @property
    def is_pod_or_controller(self) -> bool:
        return self.kind in POD_OR_CONTROLLER_KINDS

    def map_field(self, *path: str) -> Lookup:
        """Look up a nested mapping, e.g. ``resource.map_field("spec", "selector")``."""
        return nested_map(self.obj, *path)

    def list_field(self, *path: str) -> Lookup:
        """Look up a nested list, e.g. ``resource.list_field("spec", "rules")``."""
        return nested_slice(self.obj, *path)

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"Resource({self.id})"


# ---------------------------------------------------------------------------
# Label selector requirement (one matchExpressions entry)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LabelSelectorRequirement:
    """A ``matchExpressions`` entry. Operator is In, NotIn, Exists or DoesNotExist."""

    key: str
    operator: str
    values: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Dependency graph
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Edge:
    """A directed edge from the parent that owns it to ``child_id``."""

    child_id: str
    reason: Reason


@dataclass
class DependencyGraph:
    """Parent id -> outgoing edges.

    Every seeded resource is a key, even with no edges, so "no dependents" is
    distinguishable from "unknown resource". Ids that only ever appear as a
    child are still valid nodes.
    """

    adjacency: dict[str, list[Edge]] = field(default_factory=dict)

    def add_node(self, node_id: str) -> None:
        self.adjacency.setdefault(node_id, [])

    def add_edge(self, parent_id: str, edge: Edge) -> None:
        self.adjacency.setdefault(parent_id, []).append(edge)

    def edges_of(self, node_id: str) -> list[Edge]:
        return self.adjacency.get(node_id, [])

    def deduplicate(self) -> None:
        """Collapse repeated ``(child_id, reason)`` pairs, keeping first-seen order."""
        for parent, edges in self.adjacency.items():
            seen: set[tuple[str, Reason]] = set()
            unique = []
            for edge in edges:
                key = (edge.child_id, edge.reason)
                if key in seen:
                    continue
                seen.add(key)
                unique.append(edge)
            self.adjacency[parent] = unique

    def parents(self) -> list[str]:
        return sorted(self.adjacency)

    def node_ids(self) -> list[str]:
        """Every key plus every child id, sorted."""
        nodes = set(self.adjacency)
        for edges in self.adjacency.values():
            nodes.update(e.child_id for e in edges)
        return sorted(nodes)

    def connected_node_ids(self) -> list[str]:
        """Ids that take part in at least one edge, sorted."""
        nodes: set[str] = set()
        for parent, edges in self.adjacency.items():
            if edges:
                nodes.add(parent)
            nodes.update(e.child_id for e in edges)
        return sorted(nodes)

    def iter_edges(self) -> Iterator[tuple[str, Edge]]:
        """Yield ``(parent_id, edge)`` with parents sorted and edge order kept."""
        for parent in self.parents():
            for edge in self.adjacency[parent]:
                yield parent, edge

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.adjacency.values())

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.adjacency

    def __len__(self) -> int:
        return len(self.adjacency)
