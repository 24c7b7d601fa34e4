"""Tests for the manifest, chart, filter and cluster resource sources."""

from types import SimpleNamespace

import pytest
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import ForbiddenError, NotFoundError, ResourceNotFoundError
from urllib3.exceptions import MaxRetryError

from cartographer.collector import chart as chart_mod
from cartographer.collector.chart import DEFAULT_RELEASE, build_helm_command, render_chart
from cartographer.collector.cluster import SUPPORTED_RESOURCES, fetch_resources
from cartographer.collector.filters import apply_filters
from cartographer.collector.manifests import load_manifest_file, parse_manifests
from cartographer.errors import ChartRenderError, ClusterError, ManifestError
from cartographer.k8s_client import K8sClient

from tests.conftest import make_deployment, make_resource, make_service


class TestParseManifests:
    def test_multi_document(self, sample_manifests):
        resources = parse_manifests(sample_manifests)
        assert [r.id for r in resources] == ["Deployment/web", "Service/web", "ConfigMap/web-config"]

    def test_empty_and_scalar_documents_skipped(self):
        text = "---\n---\njust a string\n---\nkind: Secret\nmetadata:\n  name: s\n"
        assert [r.id for r in parse_manifests(text)] == ["Secret/s"]

    def test_list_document(self):
        text = (
            "apiVersion: v1\nkind: List\nitems:\n"
            "  - kind: ConfigMap\n    metadata:\n      name: a\n"
            "  - kind: Secret\n    metadata:\n      name: b\n"
        )
        assert [r.id for r in parse_manifests(text)] == ["ConfigMap/a", "Secret/b"]

    def test_syntax_error_returns_partial(self):
        text = "kind: ConfigMap\nmetadata:\n  name: ok\n---\nkind: [unclosed\n"
        assert [r.id for r in parse_manifests(text)] == ["ConfigMap/ok"]


class TestLoadManifestFile:
    def test_reads_file(self, manifest_file):
        assert len(load_manifest_file(manifest_file)) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError, match="failed to read input file"):
            load_manifest_file(tmp_path / "nope.yaml")

    def test_empty_path(self):
        with pytest.raises(ManifestError):
            load_manifest_file("")


class TestApplyFilters:
    def test_kinds_case_insensitive(self):
        resources = [make_deployment("web"), make_service("web"), make_resource("Secret", "s")]
        kept = apply_filters(resources, exclude_kinds=["secret", "SERVICE"])
        assert [r.id for r in kept] == ["Deployment/web"]

    def test_names_exact(self):
        resources = [make_resource("ConfigMap", "kube-root-ca.crt"), make_resource("ConfigMap", "Kube-root-ca.crt")]
        kept = apply_filters(resources, exclude_names=["kube-root-ca.crt"])
        assert [r.id for r in kept] == ["ConfigMap/Kube-root-ca.crt"]

    def test_no_filters(self):
        resources = [make_deployment("web")]
        assert apply_filters(resources) == resources


class TestChart:
    def test_build_command(self):
        cmd = build_helm_command("helm", "bitnami/redis", "vals.yaml", "", "1.2.3", "cache")
        assert cmd == [
            "helm", "template", DEFAULT_RELEASE, "bitnami/redis",
            "--namespace", "cache", "--values", "vals.yaml", "--version", "1.2.3",
        ]

    def test_minimal_command(self):
        assert build_helm_command("helm", "./chart", release="r") == ["helm", "template", "r", "./chart"]

    def test_helm_missing(self, monkeypatch):
        monkeypatch.setattr(chart_mod.shutil, "which", lambda name: None)
        with pytest.raises(ChartRenderError, match="helm command not found"):
            render_chart("./chart")

    def test_render(self, monkeypatch, sample_manifests):
        monkeypatch.setattr(chart_mod.shutil, "which", lambda name: "/usr/local/bin/helm")
        monkeypatch.setattr(
            chart_mod.subprocess,
            "run",
            lambda cmd, **kw: SimpleNamespace(returncode=0, stdout=sample_manifests, stderr=""),
        )
        assert render_chart("./chart") == sample_manifests

    def test_render_failure(self, monkeypatch):
        monkeypatch.setattr(chart_mod.shutil, "which", lambda name: "/usr/local/bin/helm")
        monkeypatch.setattr(
            chart_mod.subprocess,
            "run",
            lambda cmd, **kw: SimpleNamespace(returncode=1, stdout="", stderr="Error: chart not found\n"),
        )
        with pytest.raises(ChartRenderError, match="chart not found"):
            render_chart("missing/chart")


# ---------------------------------------------------------------------------
# Fake dynamic client for cluster listing
# ---------------------------------------------------------------------------


class FakeListing:
    def __init__(self, items):
        self._items = items

    def to_dict(self):
        return {"items": [dict(i) for i in self._items]}


class FakeApi:
    def __init__(self, kind, items, calls):
        self.kind = kind
        self.items = items
        self.calls = calls

    def get(self, namespace=None):
        self.calls.append((self.kind, namespace))
        return FakeListing(self.items)


class FakeResources:
    def __init__(self, items_by_kind, missing=(), forbidden=()):
        self.items_by_kind = items_by_kind
        self.missing = set(missing)
        self.forbidden = set(forbidden)
        self.calls: list = []

    def get(self, api_version, kind):
        if kind in self.missing:
            raise ResourceNotFoundError(f"no {kind}")
        api = FakeApi(kind, self.items_by_kind.get(kind, []), self.calls)
        if kind in self.forbidden:

            def forbidden_get(namespace=None):
                raise ForbiddenError(SimpleNamespace(status=403, reason="Forbidden", body="", headers={}))

            api.get = forbidden_get
        return api


def fake_k8s(resources) -> K8sClient:
    k8s = K8sClient()
    k8s._dynamic = SimpleNamespace(resources=resources)
    return k8s


class TestFetchResources:
    def test_namespaced_listing_fills_kind(self):
        fake = FakeResources({"Deployment": [{"metadata": {"name": "web"}}]})
        resources = fetch_resources(fake_k8s(fake), "prod")
        assert [r.id for r in resources] == ["Deployment/web"]
        assert resources[0].obj["apiVersion"] == "apps/v1"
        assert ("Deployment", "prod") in fake.calls

    def test_cluster_scoped_skipped_for_single_namespace(self):
        fake = FakeResources({"ClusterRole": [{"metadata": {"name": "admin"}}]})
        assert fetch_resources(fake_k8s(fake), "default") == []
        assert not any(kind == "ClusterRole" for kind, _ in fake.calls)

    def test_all_namespaces(self):
        fake = FakeResources({"ClusterRole": [{"metadata": {"name": "admin"}}]})
        resources = fetch_resources(fake_k8s(fake), "default", all_namespaces=True)
        assert [r.id for r in resources] == ["ClusterRole/admin"]
        assert all(ns is None for _, ns in fake.calls)
        assert len(fake.calls) == len(SUPPORTED_RESOURCES)

    def test_missing_and_forbidden_kinds_skipped(self):
        fake = FakeResources(
            {"Service": [{"metadata": {"name": "web"}}]},
            missing={"HorizontalPodAutoscaler"},
            forbidden={"Secret"},
        )
        resources = fetch_resources(fake_k8s(fake), "default")
        assert [r.id for r in resources] == ["Service/web"]

    def test_not_found_listing_skipped(self):
        fake = FakeResources({})

        def not_found(api_version, kind):
            raise NotFoundError(SimpleNamespace(status=404, reason="Not Found", body="", headers={}))

        fake.get = not_found
        assert fetch_resources(fake_k8s(fake), "default") == []

    def test_api_error_raises(self):
        fake = FakeResources({})

        def server_error(api_version, kind):
            raise ApiException(status=500, reason="Internal Server Error")

        fake.get = server_error
        with pytest.raises(ClusterError, match="failed to list Deployment"):
            fetch_resources(fake_k8s(fake), "default")

    def test_unreachable_cluster_raises(self):
        fake = FakeResources({})

        def unreachable(api_version, kind):
            raise MaxRetryError(None, "/version", reason="connection refused")

        fake.get = unreachable
        with pytest.raises(ClusterError, match="cluster unreachable while listing Deployment"):
            fetch_resources(fake_k8s(fake), "default")


class TestK8sClient:
    def test_not_connected(self):
        with pytest.raises(RuntimeError, match="not connected"):
            K8sClient().api

    def test_context_name_from_flag(self):
        assert K8sClient(context="kind-dev").get_context_name() == "kind-dev"
