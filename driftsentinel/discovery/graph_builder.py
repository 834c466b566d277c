"""
Topology Graph Builder

Assembles a TopologyGraph from scanned resource nodes and infers relationship
edges from provider metadata (subnet/VPC/security group references).
"""

from typing import Dict, List, Iterable, Any, Optional
import structlog

from ..models.topology import ResourceNode, Edge, RelationType
from .topology_graph import TopologyGraph

logger = structlog.get_logger(__name__)


def _as_id_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if isinstance(v, str) and v]
    return []


class GraphBuilder:
    """
    Builds the topology graph for one analysis cycle.

    Nodes are de-duplicated by ID on the way in. Edges are inferred from node
    metadata once all nodes are present; an inferred edge is only kept when
    both ends exist in the graph.
    """

    def __init__(self, inferred_edge_confidence: float = 0.5):
        self.graph = TopologyGraph()
        self.inferred_edge_confidence = inferred_edge_confidence

    def add_nodes(self, nodes: Iterable[ResourceNode]) -> int:
        """Add nodes whose IDs are not in the graph yet; returns how many were added"""
        added = 0
        for node in nodes:
            if self.graph.find_node(node.id) is None:
                self.graph.add_node(node)
                added += 1
        return added

    def add_edges(self, edges: Iterable[Edge]) -> None:
        """Add edges reported directly by a scanner"""
        for edge in edges:
            self.graph.add_edge(edge)

    def infer_edges(self) -> int:
        """Infer edges for every node; returns the number of edges added"""
        added = 0
        for node in self.graph.nodes:
            for edge in self._infer_edges_for_node(node):
                if self.graph.find_node(edge.source) and self.graph.find_node(edge.target):
                    self.graph.add_edge(edge)
                    added += 1
        logger.debug("edges_inferred", count=added, nodes=self.graph.node_count)
        return added

    def _infer_edges_for_node(self, node: ResourceNode) -> List[Edge]:
        """Infer the relationships a single node's metadata points at"""
        meta = node.metadata
        edges: List[Edge] = []

        if node.type in ("subnet", "security_group"):
            # VPC owns its subnets and security groups
            vpc_id = meta.get("vpc_id")
            if isinstance(vpc_id, str) and vpc_id:
                edges.append(self._edge(f"aws:vpc:{vpc_id}", node.id, RelationType.OWNERSHIP))

        elif node.type == "ec2":
            for subnet_id in _as_id_list(meta.get("subnet_id")):
                edges.append(self._edge(f"aws:subnet:{subnet_id}", node.id, RelationType.NETWORK))
            for sg_id in _as_id_list(meta.get("security_groups")):
                edges.append(self._edge(f"aws:sg:{sg_id}", node.id, RelationType.NETWORK))

        elif node.type == "rds":
            for subnet_id in _as_id_list(meta.get("subnet_ids")):
                edges.append(self._edge(f"aws:subnet:{subnet_id}", node.id, RelationType.NETWORK))
            for sg_id in _as_id_list(meta.get("security_groups")):
                edges.append(self._edge(f"aws:sg:{sg_id}", node.id, RelationType.NETWORK))

            # Instances in the same VPC probably talk to the database
            vpc_id = meta.get("vpc_id")
            if isinstance(vpc_id, str) and vpc_id:
                for other in self.graph.nodes:
                    if other.type == "ec2" and other.metadata.get("vpc_id") == vpc_id:
                        edges.append(self._edge(
                            other.id, node.id, RelationType.DEPENDENCY,
                            metadata={"inferred": True, "reason": "same VPC"},
                            confidence=self.inferred_edge_confidence,
                        ))

        return edges

    @staticmethod
    def _edge(
        source: str,
        target: str,
        relation: RelationType,
        metadata: Optional[Dict[str, Any]] = None,
        confidence: Optional[float] = None,
    ) -> Edge:
        return Edge(
            source=source,
            target=target,
            type=relation.value,
            metadata=metadata or {},
            confidence=confidence,
        )

    def build(self) -> TopologyGraph:
        """Return the finished graph"""
        return self.graph
