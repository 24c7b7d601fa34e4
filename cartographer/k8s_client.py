"""Kubernetes client wrapper for listing cluster resources."""

from __future__ import annotations

import logging
from typing import Any

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException
from kubernetes.dynamic import DynamicClient

logger = logging.getLogger(__name__)


class K8sClient:
    """Loads kubeconfig once and lists arbitrary kinds through the dynamic client."""

    def __init__(self, kubeconfig: str | None = None, context: str | None = None):
        self.kubeconfig = kubeconfig
        self.context = context
        self._api_client: client.ApiClient | None = None
        self._dynamic: DynamicClient | None = None

    def connect(self) -> None:
        """Load kubeconfig, or the in-cluster service account when there is none."""
        try:
            config.load_kube_config(config_file=self.kubeconfig, context=self.context)
        except ConfigException:
            logger.debug("No usable kubeconfig, trying in-cluster config")
            config.load_incluster_config()
        self._api_client = client.ApiClient()

    @property
    def api(self) -> client.ApiClient:
        if self._api_client is None:
            raise RuntimeError("K8sClient not connected. Call connect() first.")
        return self._api_client

    @property
    def dynamic(self) -> DynamicClient:
        # Discovery runs on construction, so build it once.
        if self._dynamic is None:
            self._dynamic = DynamicClient(self.api)
        return self._dynamic

    def list_objects(
        self, api_version: str, kind: str, namespace: str | None = None
    ) -> list[dict[str, Any]]:
        """List one kind as plain dicts, in ``namespace`` or across the cluster.

        List responses omit ``kind``/``apiVersion`` on their items, so both are
        filled in. Discovery and API errors propagate to the caller.
        """
        resource = self.dynamic.resources.get(api_version=api_version, kind=kind)
        listing = resource.get(namespace=namespace) if namespace else resource.get()
        items = listing.to_dict().get("items") or []
        for item in items:
            item.setdefault("kind", kind)
            item.setdefault("apiVersion", api_version)
        return items

    def get_context_name(self) -> str:
        if self.context:
            return self.context
        try:
            _, active = config.list_kube_config_contexts(config_file=self.kubeconfig)
        except ConfigException:
            return "in-cluster"
        return active.get("name", "unknown")
