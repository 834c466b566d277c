#!/usr/bin/env python3
"""
DriftSentinel Demo Script

Builds a small AWS topology from scanner-style metadata, classifies a few
drift observations and shows their blast radius.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from driftsentinel.config import get_settings
from driftsentinel.discovery.graph_builder import GraphBuilder
from driftsentinel.models.drift import RootCause
from driftsentinel.models.topology import ResourceNode
from driftsentinel.sentinel import DriftSentinel
from driftsentinel.utils.logging import configure_logging

console = Console()


def demo_nodes():
    """Scanner output for one VPC"""
    def node(node_id, node_type, name, **metadata):
        return ResourceNode(id=node_id, type=node_type, provider="aws",
                            region="us-west-2", name=name, metadata=metadata)

    return [
        node("aws:vpc:vpc-123", "vpc", "main-vpc", cidr="10.0.0.0/16"),
        node("aws:subnet:subnet-111", "subnet", "public-subnet-1", vpc_id="vpc-123"),
        node("aws:subnet:subnet-222", "subnet", "private-subnet-1", vpc_id="vpc-123"),
        node("aws:sg:sg-789", "security_group", "web-sg", vpc_id="vpc-123"),
        node("aws:ec2:i-111", "ec2", "web-server-1", vpc_id="vpc-123",
             subnet_id="subnet-111", security_groups=["sg-789"]),
        node("aws:ec2:i-222", "ec2", "web-server-2", vpc_id="vpc-123",
             subnet_id="subnet-111", security_groups=["sg-789"]),
        node("aws:rds:db-123", "rds", "mysql-db", vpc_id="vpc-123",
             subnet_ids=["subnet-222"], security_groups=["sg-789"]),
    ]


def demo_events(classifier):
    """Drift observations as a detection adapter would report them"""
    return [
        classifier.classify(
            resource_id="aws:sg:sg-789",
            resource_type="security_group",
            before={"ingress": [{"port": 22, "cidr": "10.0.0.0/8"}]},
            after={"ingress": [{"port": 22, "cidr": "0.0.0.0/0"}]},
            root_cause=RootCause(user_identity="ops-admin", event_name="AuthorizeSecurityGroupIngress"),
        ),
        classifier.classify(
            resource_id="aws:rds:db-123",
            resource_type="rds",
            before={"engine": "mysql", "multi_az": True},
            after=None,
        ),
        classifier.classify(
            resource_id="aws:lambda:func-456",
            resource_type="lambda",
            before=None,
            after={"runtime": "python3.11"},
        ),
    ]


def run_demo():
    settings = get_settings()
    configure_logging(settings)

    console.print(Panel.fit(
        "[bold blue]DriftSentinel[/bold blue]\n"
        "[dim]Configuration drift impact analysis[/dim]",
        title="[bold]Demo[/bold]",
        border_style="blue"
    ))

    builder = GraphBuilder(inferred_edge_confidence=settings.inferred_edge_confidence)
    builder.add_nodes(demo_nodes())
    builder.infer_edges()
    graph = builder.build()
    console.print(f"\nTopology: {graph.node_count} nodes, {graph.edge_count} edges\n")

    sentinel = DriftSentinel(settings)
    events = demo_events(sentinel.classifier)
    run = sentinel.analyze(graph, events)

    table = Table(title="Drift Impact", show_header=True, header_style="bold")
    table.add_column("Resource")
    table.add_column("Drift")
    table.add_column("Seed")
    table.add_column("Final")
    table.add_column("Affected")
    table.add_column("Blast Radius")
    for event, result in zip(run.events, run.results):
        table.add_row(
            event.resource_id,
            event.type.value,
            event.severity.value,
            result.severity.value,
            str(result.affected_resource_count),
            str(result.blast_radius),
        )
    console.print(table)

    for event, result in zip(run.events, run.results):
        tree = Tree(f"[bold]{event.resource_id}[/bold]")
        for recommendation in result.recommendations:
            tree.add(recommendation)
        console.print(tree)


if __name__ == "__main__":
    run_demo()
