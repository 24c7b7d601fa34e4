"""Display categories for resource kinds.

Categories only affect how the renderers color and group nodes; they play no
part in discovering edges.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType

OTHER = "other"


@dataclass(frozen=True)
class Category:
    key: str
    label: str
    color: str  # fill color used by both DOT and Mermaid output
    kinds: frozenset[str] = frozenset()


@dataclass(frozen=True)
class CategoryTable:
    """Ordered, immutable set of categories with a kind -> category lookup."""

    categories: tuple[Category, ...]
    _by_key: Mapping[str, Category] = field(init=False, repr=False, compare=False)
    _by_kind: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not any(c.key == OTHER for c in self.categories):
            raise ValueError(f"category table needs an {OTHER!r} category")
        by_key = {c.key: c for c in self.categories}
        by_kind = {kind: c.key for c in self.categories for kind in c.kinds}
        object.__setattr__(self, "_by_key", MappingProxyType(by_key))
        object.__setattr__(self, "_by_kind", MappingProxyType(by_kind))

    @property
    def order(self) -> list[str]:
        return [c.key for c in self.categories]

    def get(self, key: str) -> Category:
        return self._by_key[key]

    def key_for_kind(self, kind: str) -> str:
        return self._by_kind.get(kind, OTHER)

    def key_for_node(self, node_id: str) -> str:
        """Category key for a ``Kind/Name`` id. Ids without a kind are "other"."""
        kind, sep, _ = node_id.partition("/")
        if not sep:
            return OTHER
        return self.key_for_kind(kind)

    def for_node(self, node_id: str) -> Category:
        return self._by_key[self.key_for_node(node_id)]

    def present(self, node_ids: Iterable[str]) -> list[Category]:
        """Categories used by ``node_ids``, in table order."""
        used = {self.key_for_node(n) for n in node_ids}
        return [c for c in self.categories if c.key in used]

    def group(self, node_ids: Iterable[str]) -> dict[str, list[str]]:
        """Category key -> sorted node ids, for categories that have any."""
        groups: dict[str, list[str]] = {}
        for node_id in node_ids:
            groups.setdefault(self.key_for_node(node_id), []).append(node_id)
        return {key: sorted(groups[key]) for key in self.order if key in groups}


@lru_cache(maxsize=1)
def default_categories() -> CategoryTable:
    """The built-in table, created on first use."""
    return CategoryTable(
        (
            Category(
                "workloads",
                "Workloads",
                "#DAEEF3",
                frozenset(
                    {"Deployment", "DaemonSet", "StatefulSet", "ReplicaSet", "Job", "CronJob", "Pod"}
                ),
            ),
            Category(
                "networking",
                "Networking",
                "#E2EFDA",
                frozenset({"Service", "Ingress", "NetworkPolicy"}),
            ),
            Category(
                "config",
                "Config & Storage",
                "#FFF2CC",
                frozenset({"ConfigMap", "Secret", "PersistentVolumeClaim"}),
            ),
            Category(
                "rbac",
                "RBAC",
                "#E2D9F3",
                frozenset(
                    {"Role", "ClusterRole", "RoleBinding", "ClusterRoleBinding", "ServiceAccount"}
                ),
            ),
            Category(
                "autoscaling",
                "Autoscaling & Policy",
                "#FCE4D6",
                frozenset({"HorizontalPodAutoscaler", "PodDisruptionBudget"}),
            ),
            Category(OTHER, "Other", "#F2F2F2"),
        )
    )
