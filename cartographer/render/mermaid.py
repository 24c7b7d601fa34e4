"""Mermaid flowchart output."""

from __future__ import annotations

import logging

from cartographer.graph.categories import CategoryTable, default_categories
from cartographer.models import DependencyGraph

logger = logging.getLogger(__name__)

_INVALID_ID_CHARS = str.maketrans({"/": "_", "-": "_", ".": "_"})


def sanitize_mermaid_id(node_id: str) -> str:
    """Replace characters Mermaid rejects in node identifiers (/, -, .) with ``_``."""
    return node_id.translate(_INVALID_ID_CHARS)


def render_mermaid(graph: DependencyGraph, categories: CategoryTable | None = None) -> str:
    """Render ``graph`` as a left-to-right Mermaid flowchart.

    Only nodes with at least one edge are emitted. Each node keeps its real
    ``Kind/Name`` as a quoted label, and classDef/class lines color it by
    category.
    """
    categories = categories or default_categories()
    connected = graph.connected_node_ids()

    lines = ["graph LR"]
    for node in connected:
        lines.append(f'    {sanitize_mermaid_id(node)}["{node}"]')

    edge_count = 0
    for parent, edge in graph.iter_edges():
        lines.append(
            f"    {sanitize_mermaid_id(parent)} --> |{edge.reason.value}| "
            f"{sanitize_mermaid_id(edge.child_id)}"
        )
        edge_count += 1

    logger.debug("Generated Mermaid graph: %d nodes, %d edges", len(connected), edge_count)

    lines.append("")
    for cat in categories.present(connected):
        lines.append(f"    classDef {cat.key} fill:{cat.color},stroke:#333")
    for key, nodes in categories.group(connected).items():
        ids = ",".join(sanitize_mermaid_id(n) for n in nodes)
        lines.append(f"    class {ids} {key}")

    return "\n".join(lines) + "\n"
