"""PNG/SVG output through GraphViz."""

from __future__ import annotations

import logging

import graphviz

from cartographer.errors import ImageRenderError
from cartographer.graph.categories import CategoryTable
from cartographer.models import DependencyGraph
from cartographer.render.dot import render_dot

logger = logging.getLogger(__name__)

IMAGE_FORMATS = ("png", "svg")

_INSTALL_HINT = """\
Install GraphViz:
  macOS:   brew install graphviz
  Ubuntu:  sudo apt-get install graphviz
  Fedora:  sudo dnf install graphviz"""


def render_image(
    graph: DependencyGraph,
    fmt: str,
    categories: CategoryTable | None = None,
) -> bytes:
    """Lay out the DOT rendering of ``graph`` with GraphViz and return the image bytes."""
    if fmt not in IMAGE_FORMATS:
        raise ImageRenderError(f"unsupported image format {fmt!r} (expected png or svg)")

    dot_source = render_dot(graph, categories)
    logger.debug("Rendering %d bytes of DOT as %s", len(dot_source), fmt)

    try:
        return graphviz.Source(dot_source).pipe(format=fmt)
    except graphviz.ExecutableNotFound as exc:
        raise ImageRenderError(f"graphviz 'dot' command not found on PATH\n\n{_INSTALL_HINT}") from exc
    except graphviz.CalledProcessError as exc:
        stderr = exc.stderr or b""
        if isinstance(stderr, bytes):
            stderr = stderr.decode(errors="replace")
        raise ImageRenderError(
            f"graphviz rendering failed (exit {exc.returncode})\nstderr: {stderr.strip()}"
        ) from exc
