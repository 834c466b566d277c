"""
Topology Graph

In-memory graph of resource nodes and relationship edges used for
blast-radius traversal. Built once per analysis cycle from a scan snapshot,
then treated as read-only.
"""

from typing import Dict, List, Optional, Any, Sequence, Tuple
from dataclasses import dataclass, field
from collections import Counter
import networkx as nx
import structlog

from ..errors import GraphIntegrityError
from ..models.topology import ResourceNode, Edge

logger = structlog.get_logger(__name__)


@dataclass
class GraphDiagnostics:
    """Problems tolerated by the graph, reported for callers who want strictness"""
    duplicate_node_ids: List[str] = field(default_factory=list)
    dangling_edges: List[Edge] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.duplicate_node_ids and not self.dangling_edges

    def problems(self) -> List[str]:
        problems = [f"duplicate node id {node_id}" for node_id in self.duplicate_node_ids]
        problems.extend(
            f"dangling edge {edge.source} -> {edge.target} ({edge.type})"
            for edge in self.dangling_edges
        )
        return problems

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_clean": self.is_clean,
            "duplicate_node_ids": list(self.duplicate_node_ids),
            "dangling_edges": [edge.to_dict() for edge in self.dangling_edges],
        }


class TopologyGraph:
    """
    Insertion-ordered collection of resource nodes and edges.

    Node IDs are not de-duplicated and edges are not checked against the node
    set: duplicates keep their own entries (lookups return the first) and
    dangling edges are never reached by traversal. A networkx MultiDiGraph
    indexes adjacency, keyed by edge insertion position, so edge lookups keep
    the stored order.
    """

    def __init__(self):
        self._nodes: List[ResourceNode] = []
        self._edges: List[Edge] = []
        self._first_node: Dict[str, ResourceNode] = {}
        self._index = nx.MultiDiGraph()

    @property
    def nodes(self) -> Sequence[ResourceNode]:
        return tuple(self._nodes)

    @property
    def edges(self) -> Sequence[Edge]:
        return tuple(self._edges)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def add_node(self, node: ResourceNode) -> None:
        """Append a node. Callers de-duplicate upstream if they need to."""
        self._nodes.append(node)
        if node.id in self._first_node:
            logger.debug("duplicate_node_added", node_id=node.id)
            return
        self._first_node[node.id] = node
        self._index.add_node(node.id)

    def add_edge(self, edge: Edge) -> None:
        """Append an edge without checking its endpoints"""
        self._index.add_edge(edge.source, edge.target, key=len(self._edges))
        self._edges.append(edge)

    def find_node(self, node_id: str) -> Optional[ResourceNode]:
        """First node with this ID, or None"""
        return self._first_node.get(node_id)

    def find_edges(self, node_id: str) -> List[Edge]:
        """All edges with node_id at either end, in insertion order"""
        if node_id not in self._index:
            return []
        positions = {key for _, _, key in self._index.out_edges(node_id, keys=True)}
        positions.update(key for _, _, key in self._index.in_edges(node_id, keys=True))
        return [self._edges[position] for position in sorted(positions)]

    def neighbors(self, node_id: str) -> List[Tuple[Edge, ResourceNode]]:
        """(edge, neighbour) pairs for every edge whose far end is a known node"""
        pairs = []
        for edge in self.find_edges(node_id):
            neighbour = self.find_node(edge.other_end(node_id))
            if neighbour is not None:
                pairs.append((edge, neighbour))
        return pairs

    def diagnostics(self) -> GraphDiagnostics:
        """Report duplicate node IDs and edges pointing at unknown nodes"""
        counts = Counter(node.id for node in self._nodes)
        duplicates = [node_id for node_id, count in counts.items() if count > 1]
        dangling = [
            edge for edge in self._edges
            if edge.source not in self._first_node or edge.target not in self._first_node
        ]
        report = GraphDiagnostics(duplicate_node_ids=duplicates, dangling_edges=dangling)
        if not report.is_clean:
            logger.warning(
                "graph_diagnostics",
                duplicate_nodes=len(duplicates),
                dangling_edges=len(dangling),
            )
        return report

    def validate(self) -> None:
        """Raise GraphIntegrityError if diagnostics are not clean"""
        report = self.diagnostics()
        if not report.is_clean:
            raise GraphIntegrityError(report.problems())

    def to_dict(self) -> Dict[str, Any]:
        """Export graph as {nodes, edges}"""
        return {
            "nodes": [node.to_dict() for node in self._nodes],
            "edges": [edge.to_dict() for edge in self._edges],
            "node_count": self.node_count,
            "edge_count": self.edge_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopologyGraph":
        graph = cls()
        for node in data.get("nodes") or []:
            graph.add_node(ResourceNode.from_dict(node))
        for edge in data.get("edges") or []:
            graph.add_edge(Edge.from_dict(edge))
        return graph
