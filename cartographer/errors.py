"""Exceptions raised by the input and output collaborators.

The graph engine itself never raises for malformed resources; these cover
the places where cartographer talks to the outside world (files, helm, the
cluster API, GraphViz).
"""

from __future__ import annotations


class CartographerError(Exception):
    """Base class for errors the CLI reports to the user."""


class ManifestError(CartographerError):
    """A manifest file could not be read."""


class ChartRenderError(CartographerError):
    """helm is unavailable or failed to render a chart."""


class ClusterError(CartographerError):
    """Listing resources from the cluster failed."""


class ImageRenderError(CartographerError):
    """GraphViz is unavailable or failed to render the DOT output."""
