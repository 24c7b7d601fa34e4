"""Manifest decoding: multi-document YAML text -> Resources."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from cartographer.errors import ManifestError
from cartographer.models import Resource

logger = logging.getLogger(__name__)


def parse_manifests(text: str) -> list[Resource]:
    """Decode every YAML document in ``text``.

    Empty and non-mapping documents are skipped, and a ``kind: List`` document
    contributes its items. Decoding stops at the first syntax error; whatever
    was decoded before it is returned.
    """
    resources: list[Resource] = []
    try:
        for doc in yaml.safe_load_all(text):
            resources.extend(_resources_from_doc(doc))
    except yaml.YAMLError as exc:
        logger.warning("Stopped decoding manifests after %d resources: %s", len(resources), exc)
    return resources


def _resources_from_doc(doc: Any) -> list[Resource]:
    if not isinstance(doc, Mapping) or not doc:
        return []
    if doc.get("kind") == "List" and isinstance(doc.get("items"), list):
        return [Resource.from_dict(item) for item in doc["items"] if isinstance(item, Mapping) and item]
    return [Resource.from_dict(doc)]


def load_manifest_file(path: str | Path) -> list[Resource]:
    """Read and decode a manifest file."""
    if not path:
        raise ManifestError("file path must not be empty")
    logger.info("Parsing yaml input %s", path)
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise ManifestError(f"failed to read input file: {exc}") from exc
    return parse_manifests(text)
