"""Pod template resolution and reference gathering.

Pods carry their spec directly; controllers embed it at a kind-specific path.
Once resolved, the spec is scanned for Secrets, ConfigMaps, PVCs and the
ServiceAccount it depends on.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from cartographer.fields import Lookup, nested_slice, nested_string, name_of
from cartographer.models import Resource

logger = logging.getLogger(__name__)

POD_SPEC_PATHS: dict[str, tuple[str, ...]] = {
    "Pod": ("spec",),
    "Deployment": ("spec", "template", "spec"),
    "DaemonSet": ("spec", "template", "spec"),
    "StatefulSet": ("spec", "template", "spec"),
    "ReplicaSet": ("spec", "template", "spec"),
    "Job": ("spec", "template", "spec"),
    "CronJob": ("spec", "jobTemplate", "spec", "template", "spec"),
}

CONTAINER_KEYS = ("containers", "initContainers", "ephemeralContainers")


@dataclass
class PodSpecReferences:
    """References discovered in one pod spec, each as a ``Kind/Name`` id."""

    secrets: list[str] = field(default_factory=list)
    config_maps: list[str] = field(default_factory=list)
    pvcs: list[str] = field(default_factory=list)
    service_accounts: list[str] = field(default_factory=list)

    def add_secret(self, name: str) -> None:
        if name:
            self.secrets.append(f"Secret/{name}")

    def add_config_map(self, name: str) -> None:
        if name:
            self.config_maps.append(f"ConfigMap/{name}")

    def add_pvc(self, name: str) -> None:
        if name:
            self.pvcs.append(f"PersistentVolumeClaim/{name}")

    def add_service_account(self, name: str) -> None:
        if name:
            self.service_accounts.append(f"ServiceAccount/{name}")


def get_pod_spec(resource: Resource) -> Lookup:
    """Resolve the pod spec of a Pod or pod-template controller.

    Kinds without a standard pod template return a Lookup with an error.
    """
    path = POD_SPEC_PATHS.get(resource.kind)
    if path is None:
        return Lookup(None, False, f"kind {resource.kind} does not have a standard pod template")
    return resource.map_field(*path)


def gather_pod_spec_references(pod_spec: Mapping[str, Any]) -> PodSpecReferences:
    """Scan volumes, serviceAccountName, imagePullSecrets and container env."""
    refs = PodSpecReferences()
    _gather_volume_refs(pod_spec, refs)
    _gather_service_account(pod_spec, refs)
    _gather_image_pull_secrets(pod_spec, refs)
    _gather_container_env_refs(pod_spec, refs)
    return refs


def _gather_volume_refs(pod_spec: Mapping[str, Any], refs: PodSpecReferences) -> None:
    volumes, found, err = nested_slice(pod_spec, "volumes")
    if err:
        logger.debug("Skipping volumes: %s", err)
    if not found:
        return

    for vol in volumes:
        if not isinstance(vol, Mapping):
            continue
        if isinstance(vol.get("secret"), Mapping):
            refs.add_secret(name_of(vol["secret"], "secretName"))
        elif isinstance(vol.get("configMap"), Mapping):
            refs.add_config_map(name_of(vol["configMap"]))
        elif isinstance(vol.get("persistentVolumeClaim"), Mapping):
            refs.add_pvc(name_of(vol["persistentVolumeClaim"], "claimName"))
        elif isinstance(vol.get("projected"), Mapping):
            _gather_projected_refs(vol["projected"], refs)


def _gather_projected_refs(projected: Mapping[str, Any], refs: PodSpecReferences) -> None:
    sources, found, _ = nested_slice(projected, "sources")
    if not found:
        return
    for src in sources:
        if not isinstance(src, Mapping):
            continue
        refs.add_secret(name_of(src.get("secret")))
        refs.add_config_map(name_of(src.get("configMap")))


def _gather_service_account(pod_spec: Mapping[str, Any], refs: PodSpecReferences) -> None:
    sa_name, found, _ = nested_string(pod_spec, "serviceAccountName")
    if found:
        refs.add_service_account(sa_name)


def _gather_image_pull_secrets(pod_spec: Mapping[str, Any], refs: PodSpecReferences) -> None:
    pull_secrets, found, _ = nested_slice(pod_spec, "imagePullSecrets")
    if not found:
        return
    for ips in pull_secrets:
        refs.add_secret(name_of(ips))


def _gather_container_env_refs(pod_spec: Mapping[str, Any], refs: PodSpecReferences) -> None:
    for key in CONTAINER_KEYS:
        containers, found, _ = nested_slice(pod_spec, key)
        if not found:
            continue
        for container in containers:
            if not isinstance(container, Mapping):
                continue

            env_list, found_env, _ = nested_slice(container, "env")
            if found_env:
                for env in env_list:
                    if isinstance(env, Mapping) and isinstance(env.get("valueFrom"), Mapping):
                        parse_env_value_from(env["valueFrom"], refs)

            env_from_list, found_ef, _ = nested_slice(container, "envFrom")
            if found_ef:
                for env_from in env_from_list:
                    if isinstance(env_from, Mapping):
                        parse_env_from(env_from, refs)


def parse_env_value_from(value_from: Mapping[str, Any], refs: PodSpecReferences) -> None:
    """``env[].valueFrom.secretKeyRef`` / ``configMapKeyRef``."""
    refs.add_secret(name_of(value_from.get("secretKeyRef")))
    refs.add_config_map(name_of(value_from.get("configMapKeyRef")))


def parse_env_from(env_from: Mapping[str, Any], refs: PodSpecReferences) -> None:
    """``envFrom[].secretRef`` / ``configMapRef``."""
    refs.add_secret(name_of(env_from.get("secretRef")))
    refs.add_config_map(name_of(env_from.get("configMapRef")))
