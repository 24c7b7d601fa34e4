"""Helm chart rendering through the ``helm template`` command."""

from __future__ import annotations

import logging
import shutil
import subprocess

from cartographer.errors import ChartRenderError

logger = logging.getLogger(__name__)

DEFAULT_RELEASE = "cartographer-release"


def build_helm_command(
    helm_path: str,
    chart: str,
    values_file: str = "",
    release: str = DEFAULT_RELEASE,
    version: str = "",
    namespace: str = "",
) -> list[str]:
    cmd = [helm_path, "template", release or DEFAULT_RELEASE, chart]
    if namespace:
        cmd += ["--namespace", namespace]
    if values_file:
        cmd += ["--values", values_file]
    if version:
        cmd += ["--version", version]
    return cmd


def render_chart(
    chart: str,
    values_file: str = "",
    release: str = DEFAULT_RELEASE,
    version: str = "",
    namespace: str = "",
) -> str:
    """Render a chart (local path, ``repo/name`` or ``oci://`` reference) to manifest text.

    ``helm template`` resolves repositories and OCI registries itself, and
    only templates with manifest output end up in the result.
    """
    helm_path = shutil.which("helm")
    if not helm_path:
        raise ChartRenderError("helm command not found on PATH; install Helm 3 to render charts")

    cmd = build_helm_command(helm_path, chart, values_file, release, version, namespace)
    logger.info("Starting Helm chart render of %s", chart)
    logger.debug("Running %s", " ".join(cmd))

    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise ChartRenderError(f"failed to run helm: {exc}") from exc

    if proc.returncode != 0:
        raise ChartRenderError(
            f"failed to render chart {chart!r} (exit {proc.returncode}): {proc.stderr.strip()}"
        )
    return proc.stdout
