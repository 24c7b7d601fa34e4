"""GraphViz DOT output.

Nodes are color-coded by category instead of being grouped into subgraph
clusters, which leaves GraphViz free to place them for fewer edge crossings.
"""

from __future__ import annotations

from cartographer.graph.categories import CategoryTable, default_categories
from cartographer.models import DependencyGraph


def render_dot(graph: DependencyGraph, categories: CategoryTable | None = None) -> str:
    """Render ``graph`` as DOT. Only nodes with at least one edge are emitted."""
    categories = categories or default_categories()
    connected = graph.connected_node_ids()

    lines = [
        "digraph G {",
        '  rankdir="LR";',
        "  node [shape=box, style=filled];",
        "",
    ]
    for node in connected:
        lines.append(f'  "{node}" [fillcolor="{categories.for_node(node).color}"];')
    lines.append("")

    for parent, edge in graph.iter_edges():
        lines.append(f'  "{parent}" -> "{edge.child_id}" [label="{edge.reason.value}"];')

    # Legend: one HTML-table node pinned to the last rank.
    lines.extend(
        [
            "",
            '  "legend" [shape=plaintext, label=<',
            '    <TABLE BORDER="0" CELLBORDER="1" CELLSPACING="0" CELLPADDING="6">',
            '    <TR><TD COLSPAN="2"><B>Legend</B></TD></TR>',
        ]
    )
    for cat in categories.present(connected):
        label = cat.label.replace("&", "&amp;")
        lines.append(f'    <TR><TD BGCOLOR="{cat.color}">    </TD><TD>{label}</TD></TR>')
    lines.extend(
        [
            "    </TABLE>",
            "  >];",
            '  { rank=sink; "legend"; }',
            "}",
        ]
    )
    return "\n".join(lines) + "\n"
