"""Renderers: turn a DependencyGraph into DOT, Mermaid, JSON or images."""

from cartographer.render.dot import render_dot
from cartographer.render.image import render_image
from cartographer.render.json_graph import render_json
from cartographer.render.mermaid import render_mermaid, sanitize_mermaid_id

__all__ = ["render_dot", "render_image", "render_json", "render_mermaid", "sanitize_mermaid_id"]
