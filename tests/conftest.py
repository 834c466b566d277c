"""
Shared fixtures for the DriftSentinel test suite.
"""

import os

# Keep command output free of info logs
os.environ.setdefault("DRIFTSENTINEL_LOG_LEVEL", "WARNING")

import pytest

from driftsentinel.config import get_settings
from driftsentinel.discovery.topology_graph import TopologyGraph
from driftsentinel.models.drift import DriftEvent, DriftType, Severity
from driftsentinel.models.topology import Edge, ResourceNode

VPC = "aws:vpc:vpc-123"
SUBNET_1 = "aws:subnet:subnet-111"
SUBNET_2 = "aws:subnet:subnet-222"
SG = "aws:sg:sg-789"
EC2_1 = "aws:ec2:i-111"
EC2_2 = "aws:ec2:i-222"
RDS = "aws:rds:db-123"
LAMBDA = "aws:lambda:func-456"


def make_node(node_id: str, node_type: str, name: str = "", **metadata) -> ResourceNode:
    return ResourceNode(
        id=node_id,
        type=node_type,
        provider="aws",
        region="us-west-2",
        name=name or node_id.rsplit(":", 1)[-1],
        metadata=metadata,
    )


def make_event(
    resource_id: str,
    resource_type: str,
    drift_type: DriftType = DriftType.MODIFIED,
    severity: Severity = Severity.MEDIUM,
    event_id: str = "drift-test",
) -> DriftEvent:
    return DriftEvent(
        id=event_id,
        resource_id=resource_id,
        resource_type=resource_type,
        type=drift_type,
        severity=severity,
    )


def build_scenario_graph() -> TopologyGraph:
    """VPC owning two subnets and a security group, two instances, a database and a function"""
    graph = TopologyGraph()
    graph.add_node(make_node(VPC, "vpc", "main-vpc", cidr="10.0.0.0/16"))
    graph.add_node(make_node(SUBNET_1, "subnet", "public-subnet-1", cidr="10.0.1.0/24"))
    graph.add_node(make_node(SUBNET_2, "subnet", "private-subnet-1", cidr="10.0.2.0/24"))
    graph.add_node(make_node(SG, "security_group", "web-sg", vpc_id="vpc-123"))
    graph.add_node(make_node(EC2_1, "ec2", "web-server-1", instance_type="t3.micro"))
    graph.add_node(make_node(EC2_2, "ec2", "web-server-2", instance_type="t3.micro"))
    graph.add_node(make_node(RDS, "rds", "mysql-db", engine="mysql"))
    graph.add_node(make_node(LAMBDA, "lambda", "api-handler", runtime="python3.11"))

    graph.add_edge(Edge(VPC, SUBNET_1, "ownership"))
    graph.add_edge(Edge(VPC, SUBNET_2, "ownership"))
    graph.add_edge(Edge(VPC, SG, "ownership"))
    graph.add_edge(Edge(EC2_1, SUBNET_1, "network"))
    graph.add_edge(Edge(EC2_2, SUBNET_1, "network"))
    graph.add_edge(Edge(EC2_1, SG, "network"))
    graph.add_edge(Edge(EC2_2, SG, "network"))
    graph.add_edge(Edge(EC2_1, RDS, "dependency"))
    graph.add_edge(Edge(EC2_2, RDS, "dependency"))
    graph.add_edge(Edge(RDS, SUBNET_2, "network"))
    graph.add_edge(Edge(LAMBDA, SUBNET_2, "network"))
    graph.add_edge(Edge(LAMBDA, RDS, "dependency"))
    return graph


@pytest.fixture
def scenario_graph() -> TopologyGraph:
    return build_scenario_graph()


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
