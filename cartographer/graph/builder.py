"""Dependency graph builder.

Maps how resources reference or select one another so the renderers can draw
the resulting graph: owner references, label selectors, ingress backends,
autoscaler targets and pod template references.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from cartographer.graph.analyzers import ANALYZERS, Analyzer
from cartographer.graph.labels import LabelIndex
from cartographer.models import DependencyGraph, Resource

logger = logging.getLogger(__name__)


def build_dependency_graph(
    resources: Iterable[Resource],
    analyzers: Sequence[Analyzer] = ANALYZERS,
) -> DependencyGraph:
    """Build the dependency graph for a collection of resources.

    Every resource becomes a node, even if nothing references it and it
    references nothing.
    """
    resources = list(resources)
    logger.info("Starting dependency analysis of %d resources", len(resources))

    graph = DependencyGraph()
    for res in resources:
        graph.add_node(res.id)

    index = LabelIndex.build(resources)
    logger.debug("Built label index with %d label keys", len(index))

    for analyzer in analyzers:
        for res in resources:
            analyzer.analyze(res, resources, index, graph)

    graph.deduplicate()

    logger.info(
        "Finished building dependencies: %d nodes, %d edges", len(graph), graph.edge_count
    )
    return graph
