"""Reference analyzers.

Each analyzer discovers one category of reference between resources and adds
edges to the graph. They are independent of each other; ``ANALYZERS`` fixes
the order they run in so edge lists come out in a stable order.

A missing field never produces an edge, and a field with the wrong shape only
skips that one reference.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from cartographer.fields import name_of, nested_map, nested_slice, nested_string, string_map
from cartographer.graph.labels import LabelIndex, extract_match_expressions
from cartographer.graph.podspec import gather_pod_spec_references, get_pod_spec
from cartographer.models import DependencyGraph, Edge, Reason, Resource

logger = logging.getLogger(__name__)


class Analyzer(ABC):
    """Base class for a reference analyzer."""

    @abstractmethod
    def analyze(
        self,
        resource: Resource,
        resources: Sequence[Resource],
        index: LabelIndex,
        graph: DependencyGraph,
    ) -> None:
        """Add every edge ``resource`` contributes to ``graph``."""
        ...


class OwnerRefAnalyzer(Analyzer):
    """Owner -> owned object (ownerRef)."""

    def analyze(self, resource, resources, index, graph) -> None:
        child_id = resource.id
        for owner in resource.owner_references:
            graph.add_edge(owner.id, Edge(child_id, Reason.OWNER_REF))
            logger.debug("Added owner->child dependency %s -> %s", owner.id, child_id)


class LabelSelectorAnalyzer(Analyzer):
    """Service / NetworkPolicy / PodDisruptionBudget -> selected pods and controllers."""

    def analyze(self, resource, resources, index, graph) -> None:
        if resource.kind == "Service":
            self._service(resource, index, graph)
        elif resource.kind == "NetworkPolicy":
            self._selector(resource, index, graph, ("spec", "podSelector"), Reason.POD_SELECTOR)
        elif resource.kind == "PodDisruptionBudget":
            self._selector(resource, index, graph, ("spec", "selector"), Reason.PDB_SELECTOR)

    def _service(self, svc: Resource, index: LabelIndex, graph: DependencyGraph) -> None:
        # Service selectors are a flat label map; they have no matchExpressions.
        selector, found, err = svc.map_field("spec", "selector")
        if err:
            logger.warning("Could not read .spec.selector from %s: %s", svc.id, err)
        if not found:
            return
        for target in index.match(string_map(selector)):
            graph.add_edge(svc.id, Edge(target.id, Reason.SELECTOR))
            logger.debug("Added service->target dependency %s -> %s", svc.id, target.id)

    def _selector(
        self,
        resource: Resource,
        index: LabelIndex,
        graph: DependencyGraph,
        path: tuple[str, ...],
        reason: Reason,
    ) -> None:
        selector, found, err = resource.map_field(*path)
        if err:
            logger.warning("Could not read .%s from %s: %s", ".".join(path), resource.id, err)
        if not found:
            return
        match_labels = string_map(selector.get("matchLabels"))
        exprs = extract_match_expressions(selector)
        for target in index.match_selector(match_labels, exprs):
            graph.add_edge(resource.id, Edge(target.id, reason))
            logger.debug(
                "Added %s dependency %s -> %s", reason.value, resource.id, target.id
            )


class IngressAnalyzer(Analyzer):
    """Ingress -> backend Services (ingressBackend) and TLS Secrets (tlsSecret)."""

    def analyze(self, resource, resources, index, graph) -> None:
        if resource.kind != "Ingress":
            return
        ing_id = resource.id

        for svc_name in self._backend_services(resource):
            graph.add_edge(ing_id, Edge(f"Service/{svc_name}", Reason.INGRESS_BACKEND))

        tls, found, err = resource.list_field("spec", "tls")
        if err:
            logger.warning("Error retrieving .spec.tls from %s: %s", ing_id, err)
        if found:
            for entry in tls:
                secret_name = name_of(entry, "secretName")
                if secret_name:
                    graph.add_edge(ing_id, Edge(f"Secret/{secret_name}", Reason.TLS_SECRET))

    def _backend_services(self, ingress: Resource) -> list[str]:
        names = []

        rules, found, err = ingress.list_field("spec", "rules")
        if err:
            logger.warning("Error retrieving .spec.rules from %s: %s", ingress.id, err)
        if found:
            for rule in rules:
                paths, found_paths, _ = nested_slice(rule, "http", "paths")
                if not found_paths:
                    continue
                for path in paths:
                    if isinstance(path, Mapping):
                        names.extend(_backend_service_names(path.get("backend")))

        default_backend, found, _ = ingress.map_field("spec", "defaultBackend")
        if found:
            names.extend(_backend_service_names(default_backend))
        legacy_backend, found, _ = ingress.map_field("spec", "backend")
        if found:
            names.extend(_backend_service_names(legacy_backend))
        return names


def _backend_service_names(backend: object) -> list[str]:
    """Service names of an Ingress backend, in both the v1 and legacy shapes."""
    names = []
    svc, found, _ = nested_map(backend, "service")
    if found and name_of(svc):
        names.append(name_of(svc))
    legacy, found, _ = nested_string(backend, "serviceName")
    if found and legacy:
        names.append(legacy)
    return names


class AutoscalerAnalyzer(Analyzer):
    """HorizontalPodAutoscaler -> scale target (scaleTargetRef)."""

    def analyze(self, resource, resources, index, graph) -> None:
        if resource.kind != "HorizontalPodAutoscaler":
            return
        target, found, err = resource.map_field("spec", "scaleTargetRef")
        if err:
            logger.warning("Could not read .spec.scaleTargetRef from %s: %s", resource.id, err)
        if not found:
            return
        kind, name = name_of(target, "kind"), name_of(target, "name")
        if kind and name:
            graph.add_edge(resource.id, Edge(f"{kind}/{name}", Reason.SCALE_TARGET_REF))


class PodTemplateAnalyzer(Analyzer):
    """Pod or controller -> Secrets, ConfigMaps, PVCs and ServiceAccount of its pod spec."""

    def analyze(self, resource, resources, index, graph) -> None:
        if not resource.is_pod_or_controller:
            return
        pod_spec, found, err = get_pod_spec(resource)
        if err:
            logger.warning("Error retrieving pod spec from %s: %s", resource.id, err)
        if not found:
            return

        refs = gather_pod_spec_references(pod_spec)
        parent_id = resource.id
        for child in refs.secrets:
            graph.add_edge(parent_id, Edge(child, Reason.SECRET_REF))
        for child in refs.config_maps:
            graph.add_edge(parent_id, Edge(child, Reason.CONFIG_MAP_REF))
        for child in refs.pvcs:
            graph.add_edge(parent_id, Edge(child, Reason.PVC_REF))
        for child in refs.service_accounts:
            graph.add_edge(parent_id, Edge(child, Reason.SERVICE_ACCOUNT_NAME))


ANALYZERS: tuple[Analyzer, ...] = (
    OwnerRefAnalyzer(),
    LabelSelectorAnalyzer(),
    IngressAnalyzer(),
    AutoscalerAnalyzer(),
    PodTemplateAnalyzer(),
)
