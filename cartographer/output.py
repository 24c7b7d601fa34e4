"""Rich terminal summary of a dependency graph."""

from __future__ import annotations

from collections import Counter

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from cartographer.graph.categories import CategoryTable, default_categories
from cartographer.models import DependencyGraph


def render_summary(
    graph: DependencyGraph,
    console: Console,
    resource_count: int,
    categories: CategoryTable | None = None,
) -> None:
    """Print counts, then every parent with its outgoing edges, grouped by category.

    ``resource_count`` is the number of analyzed resources. The graph can hold
    more keys than that, since owners named only in ownerReferences become
    parents too.
    """
    categories = categories or default_categories()

    _render_scorecard(graph, console, resource_count)

    parents = [p for p in graph.parents() if graph.edges_of(p)]
    if not parents:
        console.print("[dim]No dependencies found.[/dim]")
        return

    console.print()
    console.rule("[bold]Dependencies[/bold]")
    for key, nodes in categories.group(parents).items():
        cat = categories.get(key)
        tree = Tree(Text(cat.label, style="bold"))
        for parent in nodes:
            branch = tree.add(Text(parent, style="cyan"))
            for edge in graph.edges_of(parent):
                branch.add(
                    Text.assemble(
                        (edge.child_id, ""),
                        (f"  ({edge.reason.value})", "dim"),
                    )
                )
        console.print(Panel(tree, border_style=cat.color))

    _render_isolated(graph, console)


def _render_scorecard(graph: DependencyGraph, console: Console, resource_count: int) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("metric", style="bold")
    table.add_column("value", justify="right")

    table.add_row("Resources", str(resource_count))
    table.add_row("Nodes", str(len(graph.node_ids())))
    table.add_row("Edges", str(graph.edge_count))

    reasons = Counter(edge.reason.value for _, edge in graph.iter_edges())
    if reasons:
        table.add_row("", "")
        for reason, count in sorted(reasons.items()):
            table.add_row(Text(reason, style="dim"), str(count))

    console.print(Panel(table, title="[bold]Summary[/bold]", border_style="dim"))


def _render_isolated(graph: DependencyGraph, console: Console) -> None:
    connected = set(graph.connected_node_ids())
    isolated = [n for n in graph.parents() if n not in connected]
    if not isolated:
        return
    console.print(
        f"[dim]{len(isolated)} resource(s) without dependencies: {', '.join(isolated)}[/dim]"
    )
