"""Shared fixtures and helpers for cartographer tests.

Factories build plain manifest dicts, shaped the way ``yaml.safe_load`` or the
dynamic client hands them over, and wrap them as Resources.
"""

from __future__ import annotations

from typing import Any

import pytest

from cartographer.models import Resource


def _meta(
    name: str,
    namespace: str = "default",
    labels: dict | None = None,
    owners: list[tuple[str, str]] | None = None,
) -> dict[str, Any]:
    meta: dict[str, Any] = {"name": name, "namespace": namespace}
    if labels is not None:
        meta["labels"] = labels
    if owners:
        meta["ownerReferences"] = [{"kind": kind, "name": owner} for kind, owner in owners]
    return meta


def make_resource(kind: str, name: str, api_version: str = "v1", **spec: Any) -> Resource:
    obj: dict[str, Any] = {"apiVersion": api_version, "kind": kind, "metadata": _meta(name)}
    if spec:
        obj["spec"] = spec
    return Resource.from_dict(obj)


# ---------------------------------------------------------------------------
# Pod / workload factories
# ---------------------------------------------------------------------------


def make_pod_spec(
    volumes: list | None = None,
    containers: list | None = None,
    service_account: str | None = None,
    image_pull_secrets: list[str] | None = None,
) -> dict[str, Any]:
    spec: dict[str, Any] = {"containers": containers or [{"name": "main", "image": "nginx"}]}
    if volumes is not None:
        spec["volumes"] = volumes
    if service_account is not None:
        spec["serviceAccountName"] = service_account
    if image_pull_secrets:
        spec["imagePullSecrets"] = [{"name": n} for n in image_pull_secrets]
    return spec


def make_pod(
    name: str,
    namespace: str = "default",
    labels: dict | None = None,
    owner_kind: str | None = None,
    owner_name: str | None = None,
    pod_spec: dict | None = None,
) -> Resource:
    owners = [(owner_kind, owner_name)] if owner_kind and owner_name else None
    return Resource.from_dict(
        {
            "apiVersion": "v1",
            "kind": "Pod",
            "metadata": _meta(name, namespace, labels if labels is not None else {"app": name}, owners),
            "spec": pod_spec or make_pod_spec(),
        }
    )


def make_workload(
    kind: str,
    name: str,
    namespace: str = "default",
    labels: dict | None = None,
    pod_spec: dict | None = None,
    owner_kind: str | None = None,
    owner_name: str | None = None,
) -> Resource:
    labels = labels if labels is not None else {"app": name}
    template = {"metadata": {"labels": labels}, "spec": pod_spec or make_pod_spec()}
    if kind == "CronJob":
        spec: dict[str, Any] = {"schedule": "*/5 * * * *", "jobTemplate": {"spec": {"template": template}}}
    else:
        spec = {"selector": {"matchLabels": labels}, "template": template}
    owners = [(owner_kind, owner_name)] if owner_kind and owner_name else None
    return Resource.from_dict(
        {
            "apiVersion": "batch/v1" if kind in ("Job", "CronJob") else "apps/v1",
            "kind": kind,
            "metadata": _meta(name, namespace, labels, owners),
            "spec": spec,
        }
    )


def make_deployment(name: str, **kwargs: Any) -> Resource:
    return make_workload("Deployment", name, **kwargs)


def make_replicaset(name: str, owner_deployment: str | None = None, **kwargs: Any) -> Resource:
    if owner_deployment:
        kwargs.setdefault("owner_kind", "Deployment")
        kwargs.setdefault("owner_name", owner_deployment)
    return make_workload("ReplicaSet", name, **kwargs)


# ---------------------------------------------------------------------------
# Networking factories
# ---------------------------------------------------------------------------


def make_service(name: str, namespace: str = "default", selector: dict | None = None) -> Resource:
    return Resource.from_dict(
        {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": _meta(name, namespace),
            "spec": {
                "selector": selector if selector is not None else {"app": name},
                "ports": [{"port": 80, "targetPort": 8080}],
            },
        }
    )


def make_ingress(
    name: str,
    backends: list[str] | None = None,
    tls_secrets: list[str] | None = None,
    default_backend: str | None = None,
) -> Resource:
    spec: dict[str, Any] = {}
    if backends:
        spec["rules"] = [
            {
                "host": "example.com",
                "http": {
                    "paths": [
                        {
                            "path": f"/{svc}",
                            "pathType": "Prefix",
                            "backend": {"service": {"name": svc, "port": {"number": 80}}},
                        }
                        for svc in backends
                    ]
                },
            }
        ]
    if tls_secrets:
        spec["tls"] = [{"hosts": ["example.com"], "secretName": s} for s in tls_secrets]
    if default_backend:
        spec["defaultBackend"] = {"service": {"name": default_backend, "port": {"number": 80}}}
    return Resource.from_dict(
        {
            "apiVersion": "networking.k8s.io/v1",
            "kind": "Ingress",
            "metadata": _meta(name),
            "spec": spec,
        }
    )


def make_network_policy(
    name: str, match_labels: dict | None = None, match_expressions: list | None = None
) -> Resource:
    selector: dict[str, Any] = {}
    if match_labels is not None:
        selector["matchLabels"] = match_labels
    if match_expressions is not None:
        selector["matchExpressions"] = match_expressions
    return Resource.from_dict(
        {
            "apiVersion": "networking.k8s.io/v1",
            "kind": "NetworkPolicy",
            "metadata": _meta(name),
            "spec": {"podSelector": selector, "policyTypes": ["Ingress"]},
        }
    )


# ---------------------------------------------------------------------------
# Autoscaling & policy factories
# ---------------------------------------------------------------------------


def make_pdb(name: str, match_labels: dict | None = None, match_expressions: list | None = None) -> Resource:
    selector: dict[str, Any] = {}
    if match_labels is not None:
        selector["matchLabels"] = match_labels
    if match_expressions is not None:
        selector["matchExpressions"] = match_expressions
    return Resource.from_dict(
        {
            "apiVersion": "policy/v1",
            "kind": "PodDisruptionBudget",
            "metadata": _meta(name),
            "spec": {"minAvailable": 1, "selector": selector},
        }
    )


def make_hpa(name: str, target_kind: str = "Deployment", target_name: str | None = None) -> Resource:
    return Resource.from_dict(
        {
            "apiVersion": "autoscaling/v2",
            "kind": "HorizontalPodAutoscaler",
            "metadata": _meta(name),
            "spec": {
                "scaleTargetRef": {
                    "apiVersion": "apps/v1",
                    "kind": target_kind,
                    "name": target_name if target_name is not None else name,
                },
                "minReplicas": 1,
                "maxReplicas": 5,
            },
        }
    )


# ---------------------------------------------------------------------------
# Manifest text
# ---------------------------------------------------------------------------


SAMPLE_MANIFESTS = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
  labels:
    app: web
spec:
  selector:
    matchLabels:
      app: web
  template:
    metadata:
      labels:
        app: web
    spec:
      containers:
        - name: web
          image: nginx
          envFrom:
            - configMapRef:
                name: web-config
---
apiVersion: v1
kind: Service
metadata:
  name: web
spec:
  selector:
    app: web
  ports:
    - port: 80
---
apiVersion: v1
kind: ConfigMap
metadata:
  name: web-config
data:
  LOG_LEVEL: info
"""


@pytest.fixture
def sample_manifests() -> str:
    return SAMPLE_MANIFESTS


@pytest.fixture
def manifest_file(tmp_path):
    path = tmp_path / "manifests.yaml"
    path.write_text(SAMPLE_MANIFESTS)
    return path
