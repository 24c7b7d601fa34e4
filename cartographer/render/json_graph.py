"""JSON node/edge output, for jq, custom visualizers or CI pipelines."""

from __future__ import annotations

import json
from typing import Any

from cartographer.graph.categories import CategoryTable, default_categories
from cartographer.models import DependencyGraph


def graph_to_dict(
    graph: DependencyGraph, categories: CategoryTable | None = None
) -> dict[str, Any]:
    """``{"nodes": [{id, group}], "edges": [{from, to, reason}]}``.

    Unlike the drawn formats, every node is included, isolated ones too.
    """
    categories = categories or default_categories()
    nodes = [{"id": n, "group": categories.key_for_node(n)} for n in graph.node_ids()]
    edges = [
        {"from": parent, "to": edge.child_id, "reason": edge.reason.value}
        for parent, edge in graph.iter_edges()
    ]
    return {"nodes": nodes, "edges": edges}


def render_json(graph: DependencyGraph, categories: CategoryTable | None = None) -> str:
    return json.dumps(graph_to_dict(graph, categories), indent=2)
