"""
DriftSentinel CLI Tool

Command-line interface for drift impact analysis.
"""

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.tree import Tree
from rich.markup import escape
import json
import sys

from .. import __version__
from ..config import get_settings
from ..errors import DriftSentinelError
from ..utils.logging import configure_logging

console = Console()

SEVERITY_STYLES = {
    "critical": "red",
    "high": "orange1",
    "medium": "yellow",
    "low": "green",
}


@click.group()
@click.version_option(version=__version__, prog_name="DriftSentinel")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, verbose):
    """
    DriftSentinel - Configuration Drift Impact Analysis

    Estimates the blast radius of infrastructure drift by walking the
    resource topology graph.
    """
    settings = get_settings()
    if verbose:
        settings = settings.model_copy(update={"log_level": "DEBUG"})
    configure_logging(settings)
    ctx.obj = settings


@cli.command()
@click.option("--graph", "-g", "graph_path", required=True, type=click.Path(exists=True, dir_okay=False),
              help="Topology graph snapshot (JSON or YAML)")
@click.option("--events", "-e", "events_path", required=True, type=click.Path(exists=True, dir_okay=False),
              help="Drift events (JSON or YAML)")
@click.option("--output", "-o", type=click.Path(), help="Output file for results (JSON)")
@click.option("--format", "-f", type=click.Choice(["table", "json"]), default="table")
@click.option("--max-hops", type=click.IntRange(min=1), help="Traversal bound in hops")
@click.option("--workers", type=click.IntRange(min=0), help="Worker threads (0 = CPU count)")
@click.option("--strict", is_flag=True, help="Fail on duplicate nodes or dangling edges")
@click.pass_obj
def impact(settings, graph_path, events_path, output, format, max_hops, workers, strict):
    """
    Analyze the blast radius of drift events.

    Examples:

        driftsentinel impact --graph graph.json --events drifts.json
        driftsentinel impact -g graph.yaml -e drifts.yaml --format json -o impact.json
    """
    from ..sentinel import DriftSentinel
    from ..ingest import dump_json

    overrides = {}
    if max_hops is not None:
        overrides["max_hops"] = max_hops
    if workers is not None:
        overrides["batch_workers"] = workers
    if strict:
        overrides["strict_graph"] = True
    if overrides:
        settings = settings.model_copy(update=overrides)

    try:
        run = DriftSentinel(settings).run_files(graph_path, events_path)
    except DriftSentinelError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    result = run.to_dict()
    if format == "json":
        click.echo(json.dumps(result, indent=2, default=str))
    else:
        _display_run(run)

    if output:
        dump_json(result, output)
        if format != "json":
            console.print(f"\n[green]Results saved to {output}[/green]")


def _display_run(run):
    """Display impact analysis results"""
    if not run.results:
        console.print("[green]No drift detected[/green]")
        return

    summary = Panel(
        f"Drift Events: {len(run.results)}\n"
        f"Graph: {run.graph_stats.get('node_count', 0)} nodes, "
        f"{run.graph_stats.get('edge_count', 0)} edges\n"
        f"Max Blast Radius: {run.max_blast_radius} hops",
        title="[bold blue]Drift Impact Summary[/bold blue]",
        border_style="blue"
    )
    console.print(summary)

    table = Table(title="Impact by Event", show_header=True, header_style="bold")
    table.add_column("#")
    table.add_column("Drift")
    table.add_column("Resource")
    table.add_column("Severity", style="bold")
    table.add_column("Affected")
    table.add_column("Blast Radius")

    for i, (event, result) in enumerate(zip(run.events, run.results), 1):
        style = SEVERITY_STYLES[result.severity.value]
        table.add_row(
            str(i),
            event.type.value,
            f"{event.resource_id} ({event.resource_type})",
            f"[{style}]{result.severity.value.upper()}[/{style}]",
            str(result.affected_resource_count),
            f"{result.blast_radius} hops",
        )
    console.print(table)

    for event, result in zip(run.events, run.results):
        tree = Tree(f"[bold]{event.resource_id}[/bold] [dim]({event.type.value})[/dim]")
        if result.affected_resources:
            affected = tree.add("Affected resources")
            for resource in result.affected_resources:
                affected.add(
                    f"{resource.resource_id} [dim]{resource.relation_type}, "
                    f"{resource.distance} hop(s)[/dim] - {resource.impact_description}"
                )
        actions = tree.add("Recommendations")
        for recommendation in result.recommendations:
            actions.add(recommendation)
        console.print(tree)

    if not run.diagnostics.is_clean:
        console.print(
            f"\n[yellow]Graph diagnostics: {len(run.diagnostics.duplicate_node_ids)} duplicate node(s), "
            f"{len(run.diagnostics.dangling_edges)} dangling edge(s)[/yellow]"
        )


@cli.command()
@click.argument("before_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("after_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--resource-type", "-t", default="", help="Resource type, e.g. security_group")
@click.option("--drift-type", type=click.Choice(["created", "modified", "deleted"]),
              help="Override the inferred drift type")
@click.option("--format", "-f", type=click.Choice(["table", "json"]), default="table")
def diff(before_path, after_path, resource_type, drift_type, format):
    """
    Diff two attribute snapshots and show the seed severity.

    Examples:

        driftsentinel diff before.json after.json --resource-type security_group
    """
    from ..detection.drift_classifier import DriftClassifier
    from ..ingest import load_document

    try:
        before = load_document(before_path)
        after = load_document(after_path)
        event = DriftClassifier().classify(
            resource_id=f"snapshot:{resource_type or 'unknown'}:{after_path}",
            resource_type=resource_type,
            before=before,
            after=after,
            drift_type=drift_type,
        )
    except DriftSentinelError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    if format == "json":
        click.echo(json.dumps({
            "type": event.type.value,
            "severity": event.severity.value,
            "diff": {key: entry.to_dict() for key, entry in event.diff.items()},
        }, indent=2, default=str))
        return

    style = SEVERITY_STYLES[event.severity.value]
    console.print(
        f"\nDrift: [bold]{event.type.value}[/bold]  "
        f"Severity: [{style}]{event.severity.value.upper()}[/{style}]\n"
    )
    if not event.diff:
        console.print("[green]No attribute changes[/green]")
        return

    table = Table(title="Attribute Changes", show_header=True, header_style="bold")
    table.add_column("Attribute")
    table.add_column("Change")
    table.add_column("Before")
    table.add_column("After")
    for key, entry in sorted(event.diff.items()):
        data = entry.to_dict()
        table.add_row(
            key,
            entry.kind.value,
            escape(json.dumps(data["before"])) if "before" in data else "",
            escape(json.dumps(data["after"])) if "after" in data else "",
        )
    console.print(table)


@cli.command()
@click.option("--graph", "-g", "graph_path", required=True, type=click.Path(exists=True, dir_okay=False),
              help="Topology graph snapshot (JSON or YAML)")
def graph(graph_path):
    """
    Show topology graph statistics and diagnostics.
    """
    from ..ingest import load_graph

    try:
        topology = load_graph(graph_path)
    except DriftSentinelError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    report = topology.diagnostics()
    status = "[green]clean[/green]" if report.is_clean else "[yellow]issues found[/yellow]"
    console.print(Panel(
        f"Nodes: {topology.node_count}\n"
        f"Edges: {topology.edge_count}\n"
        f"Diagnostics: {status}",
        title="[bold blue]Topology Graph[/bold blue]",
        border_style="blue"
    ))
    for problem in report.problems():
        console.print(f"  [yellow]- {problem}[/yellow]")


def main():
    """Entry point for CLI"""
    cli()


if __name__ == "__main__":
    main()
