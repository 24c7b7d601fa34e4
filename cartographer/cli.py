"""CLI entry point for cartographer.

Usage:
    cartographer analyze (--input FILE | --chart CHART | --cluster) [--output-format FMT] [--output-file PATH]
    cartographer analyze --help
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from cartographer import __version__
from cartographer.collector.chart import render_chart
from cartographer.collector.cluster import fetch_resources
from cartographer.collector.filters import apply_filters
from cartographer.collector.manifests import load_manifest_file, parse_manifests
from cartographer.config import CONFIG_FILENAME, OUTPUT_FORMATS, SAMPLE_CONFIG, Config
from cartographer.errors import CartographerError
from cartographer.graph.builder import build_dependency_graph
from cartographer.k8s_client import K8sClient
from cartographer.models import DependencyGraph, Resource
from cartographer.output import render_summary
from cartographer.render import render_dot, render_image, render_json, render_mermaid
from cartographer.render.image import IMAGE_FORMATS

# Status goes to stderr so stdout stays clean for piping the graph.
console = Console(stderr=True)

DEFAULT_NAMESPACE = "default"

TEXT_RENDERERS = {
    "dot": ("DOT", render_dot),
    "mermaid": ("Mermaid", render_mermaid),
    "json": ("JSON", render_json),
}

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="cartographer")
def main():
    """Map the dependencies between Kubernetes resources.

    Reads manifests, a rendered Helm chart or a live cluster, works out how
    the resources reference and select each other, and writes the graph as
    DOT, Mermaid, JSON or an image.
    """
    pass


@main.command()
@click.option("--input", "-i", "input_path", default="", help="Path to a Kubernetes YAML file")
@click.option("--chart", "-c", default="", help="Chart reference or local path to a Helm chart (e.g. bitnami/postgresql)")
@click.option("--cluster", "cluster_mode", is_flag=True, help="Analyze resources from a live Kubernetes cluster")
@click.option("--all-namespaces", "-A", is_flag=True, help="Fetch resources from all namespaces (requires --cluster)")
@click.option("--values", "values_file", default="", help="Path to a values file for the Helm chart")
@click.option("--release", "-l", default="", help="Release name for the Helm chart")
@click.option("--version", "chart_version", default="", help="Chart version to pull")
@click.option("--namespace", "-n", default="", help="Namespace for the Helm release or cluster scope (default: default)")
@click.option("--context", default="", help="Kubernetes context to use (cluster mode)")
@click.option("--kubeconfig", "-k", default="", help="Path to kubeconfig file (cluster mode)")
@click.option(
    "--output-format",
    "-f",
    type=click.Choice(OUTPUT_FORMATS),
    default=None,
    help="Output format (default: dot, or output.defaultFormat from the config file)",
)
@click.option("--output-file", "-o", default="", help="Output file path (required for png/svg)")
@click.option("--summary", is_flag=True, help="Also print a summary of the graph to the terminal")
@click.option("--config", "config_path", default="", help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def analyze(
    input_path: str,
    chart: str,
    cluster_mode: bool,
    all_namespaces: bool,
    values_file: str,
    release: str,
    chart_version: str,
    namespace: str,
    context: str,
    kubeconfig: str,
    output_format: str | None,
    output_file: str,
    summary: bool,
    config_path: str,
    verbose: bool,
):
    """Analyze resources and generate a dependency graph."""
    sources = sum(1 for s in (input_path, chart, cluster_mode) if s)
    if sources == 0:
        raise click.UsageError("no input source provided; specify --input, --chart, or --cluster")
    if sources > 1:
        raise click.UsageError("--input, --chart, and --cluster are mutually exclusive")
    if all_namespaces and not cluster_mode:
        raise click.UsageError("--all-namespaces can only be used with --cluster")

    # Load config (file -> env -> CLI flags)
    try:
        cfg = Config.load(config_path or None)
    except (OSError, ValueError) as exc:
        raise click.UsageError(f"invalid configuration: {exc}") from exc

    _setup_logging("debug" if verbose else cfg.log_level)

    if context:
        cfg.context = context
    if kubeconfig:
        cfg.kubeconfig = kubeconfig
    if release:
        cfg.release = release
    fmt = output_format or cfg.default_format
    namespace = namespace or DEFAULT_NAMESPACE

    if fmt in IMAGE_FORMATS and not output_file:
        raise click.UsageError(
            f"--output-file is required for {fmt} format (binary data cannot be printed to stdout)"
        )

    try:
        resources = _load_resources(
            cfg, input_path, chart, cluster_mode, all_namespaces, values_file, chart_version, namespace
        )

        before = len(resources)
        resources = apply_filters(resources, cfg.exclude_kinds, cfg.exclude_names)
        if excluded := before - len(resources):
            console.print(f"[dim]Excluded {excluded} resource(s) by config filters[/dim]")

        t0 = time.time()
        graph = build_dependency_graph(resources)
        console.print(
            f"[dim]Built dependency graph: {len(resources)} resources, "
            f"{graph.edge_count} edges in {time.time() - t0:.2f}s[/dim]"
        )

        if summary:
            render_summary(graph, console, len(resources))

        _write_output(graph, fmt, output_file)
    except CartographerError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(1)


def _load_resources(
    cfg: Config,
    input_path: str,
    chart: str,
    cluster_mode: bool,
    all_namespaces: bool,
    values_file: str,
    chart_version: str,
    namespace: str,
) -> list[Resource]:
    if cluster_mode:
        k8s = K8sClient(kubeconfig=cfg.kubeconfig or None, context=cfg.context or None)
        try:
            k8s.connect()
        except Exception as exc:
            console.print(f"[bold red]Failed to connect to cluster:[/bold red] {exc}")
            console.print(
                "\n[dim]Make sure your kubeconfig is valid and the cluster is reachable.\n"
                "You can specify a context with --context or a kubeconfig with --kubeconfig.[/dim]"
            )
            sys.exit(1)

        scope = "all namespaces" if all_namespaces else f"namespace {namespace}"
        console.print(f"[green]Connected to context:[/green] {k8s.get_context_name()} ({scope})")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            console=console,
        ) as progress:
            resources = fetch_resources(k8s, namespace, all_namespaces, progress=progress)
    elif chart:
        with console.status(f"[bold]Rendering chart {chart}...[/bold]"):
            text = render_chart(chart, values_file, cfg.release, chart_version, namespace)
        resources = parse_manifests(text)
    else:
        resources = load_manifest_file(input_path)

    console.print(f"[dim]Loaded {len(resources)} resources[/dim]")
    return resources


def _write_output(graph: DependencyGraph, fmt: str, output_file: str) -> None:
    logger.debug("Generating %s output", fmt)

    if fmt in IMAGE_FORMATS:
        data = render_image(graph, fmt)
        _write_file(output_file, data, fmt.upper())
        return

    label, renderer = TEXT_RENDERERS[fmt]
    content = renderer(graph)
    if not output_file:
        click.echo(content, nl=False)
        return
    _write_file(output_file, content.encode(), label)


def _write_file(path: str, data: bytes, label: str) -> None:
    try:
        Path(path).write_bytes(data)
    except OSError as exc:
        raise CartographerError(f"failed to write {label} output: {exc}") from exc
    console.print(f"[green]Wrote {label} output:[/green] {path} ({len(data)} bytes)")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
def version():
    """Print the version of cartographer."""
    click.echo(f"cartographer {__version__}")


@main.command()
def init():
    """Generate a sample configuration file."""
    out_path = Path.cwd() / CONFIG_FILENAME
    if out_path.exists():
        console.print(f"[yellow]Config file already exists:[/yellow] {out_path}")
        return

    out_path.write_text(SAMPLE_CONFIG)
    console.print(f"[green]Created config file:[/green] {out_path}")
    console.print("[dim]Edit it to set output defaults and exclusion filters.[/dim]")


if __name__ == "__main__":
    main()
