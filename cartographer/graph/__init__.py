from cartographer.graph.builder import build_dependency_graph
from cartographer.graph.categories import CategoryTable, default_categories
from cartographer.graph.labels import LabelIndex

__all__ = ["CategoryTable", "LabelIndex", "build_dependency_graph", "default_categories"]
