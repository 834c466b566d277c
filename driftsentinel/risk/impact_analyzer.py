"""
Impact Analyzer

Estimates the blast radius of a drift event by walking the topology graph
breadth-first from the drifted resource, then escalates severity and
produces recommended actions.
"""

from typing import List, Optional, Sequence, Tuple
from collections import deque
from concurrent.futures import ThreadPoolExecutor
import os
import structlog

from ..errors import BatchAnalysisError, ConfigurationError, ImpactInvariantError
from ..discovery.topology_graph import TopologyGraph
from ..detection.drift_classifier import is_security_resource
from ..models.drift import (
    AffectedResource, DriftEvent, DriftType, ImpactAnalysisResult, Severity,
)
from ..models.topology import ResourceNode, RelationType

logger = structlog.get_logger(__name__)

DEFAULT_MAX_HOPS = 3
DEFAULT_VOLUME_THRESHOLD = 10

SELF_RELATION = "self"

IMPACT_DESCRIPTIONS = {
    RelationType.NETWORK: "Network connectivity may be affected",
    RelationType.DEPENDENCY: "Dependent resource may experience issues",
    RelationType.OWNERSHIP: "Parent-child relationship affected",
    RelationType.OTHER: "May be impacted by drift",
}

NOT_FOUND_RECOMMENDATION = (
    "Resource not found in the topology graph. It may be newly created and not yet indexed."
)


def describe_impact(relation_type: str, drift_type: DriftType) -> str:
    """
    Impact description for a resource reached through relation_type.
    The drift type does not change the wording yet.
    """
    return IMPACT_DESCRIPTIONS[RelationType.from_value(relation_type)]


class ImpactAnalyzer:
    """
    Analyzes drift events against one topology graph snapshot.

    Every call is a pure function of (graph, event): the graph is only read,
    so a batch can be fanned out across threads without locking.
    """

    def __init__(
        self,
        graph: TopologyGraph,
        max_hops: int = DEFAULT_MAX_HOPS,
        volume_threshold: int = DEFAULT_VOLUME_THRESHOLD,
        max_workers: int = 1,
    ):
        if max_hops < 1:
            raise ConfigurationError(f"max_hops must be at least 1, got {max_hops}")
        if volume_threshold < 0:
            raise ConfigurationError(f"volume_threshold must not be negative, got {volume_threshold}")
        if max_workers < 0:
            raise ConfigurationError(f"max_workers must not be negative, got {max_workers}")

        self.graph = graph
        self.max_hops = max_hops
        self.volume_threshold = volume_threshold
        self.max_workers = max_workers or (os.cpu_count() or 1)

    def analyze_impact(self, event: DriftEvent) -> ImpactAnalysisResult:
        """
        Analyze the impact of a single drift event.

        A resource missing from the graph is not an error: the result has no
        affected resources, low severity and a single recommendation.

        Raises:
            DriftEventValidationError: the event has no resource ID
            ImpactInvariantError: the result broke an engine invariant
        """
        event.validate()

        start = self.graph.find_node(event.resource_id)
        if start is None:
            logger.info(
                "impact_resource_not_found",
                drift_event_id=event.id,
                resource_id=event.resource_id,
            )
            return ImpactAnalysisResult(
                drift_event_id=event.id,
                affected_resources=(),
                blast_radius=0,
                recommendations=(NOT_FOUND_RECOMMENDATION,),
                severity=Severity.LOW,
            )

        affected = self.find_affected_resources(start, event.type)
        result = ImpactAnalysisResult(
            drift_event_id=event.id,
            affected_resources=tuple(affected),
            blast_radius=self.calculate_blast_radius(affected),
            recommendations=tuple(self.generate_recommendations(event, affected)),
            severity=self.calculate_overall_severity(event.severity, affected),
        )
        self._check_invariants(event, result)

        logger.info(
            "impact_analysis_completed",
            drift_event_id=event.id,
            resource_id=event.resource_id,
            affected=result.affected_resource_count,
            blast_radius=result.blast_radius,
            severity=result.severity.value,
        )
        return result

    def find_affected_resources(
        self,
        start: ResourceNode,
        drift_type: DriftType,
    ) -> List[AffectedResource]:
        """
        Bounded BFS from start over edges in both directions.

        The start node is never reported. A node reachable by several shortest
        paths keeps the relation of the edge enumerated first, following edge
        insertion order.
        """
        affected: List[AffectedResource] = []
        visited = set()
        queue = deque([(start, 0, SELF_RELATION)])

        while queue:
            node, distance, relation = queue.popleft()
            if node.id in visited:
                continue
            visited.add(node.id)

            if distance > 0:
                affected.append(AffectedResource(
                    resource_id=node.id,
                    resource_type=node.type,
                    relation_type=relation,
                    distance=distance,
                    impact_description=describe_impact(relation, drift_type),
                ))

            if distance >= self.max_hops:
                continue

            for edge, neighbour in self.graph.neighbors(node.id):
                if neighbour.id not in visited:
                    queue.append((neighbour, distance + 1, edge.type))

        return affected

    @staticmethod
    def calculate_blast_radius(affected: Sequence[AffectedResource]) -> int:
        """Largest hop distance among affected resources, 0 if none"""
        return max((r.distance for r in affected), default=0)

    def calculate_overall_severity(
        self,
        severity: Severity,
        affected: Sequence[AffectedResource],
    ) -> Severity:
        """
        Escalate the event's severity. Each rule moves at most one step and
        never lowers it: a wide blast radius can reach critical, a touched
        security resource stops at high.
        """
        if len(affected) > self.volume_threshold:
            severity = severity.escalate()

        if any(is_security_resource(r.resource_type) for r in affected):
            severity = severity.escalate(cap=Severity.HIGH)

        return severity

    @staticmethod
    def generate_recommendations(
        event: DriftEvent,
        affected: Sequence[AffectedResource],
    ) -> List[str]:
        recommendations: List[str] = []

        if event.type == DriftType.DELETED:
            recommendations.append("Review if this resource deletion was intentional")
            if affected:
                recommendations.append(
                    f"Check {len(affected)} dependent resources for potential issues"
                )
            recommendations.append("Update the declared state if the deletion is permanent")

        elif event.type == DriftType.MODIFIED:
            recommendations.append("Verify configuration changes against security policies")
            if event.resource_type == "security_group":
                recommendations.append("Review security group rules for potential vulnerabilities")
            recommendations.append("Apply the changes to the declared configuration or revert them")

        elif event.type == DriftType.CREATED:
            recommendations.append("Import the resource into the declared configuration if needed")
            recommendations.append("Document the reason for manual resource creation")

        return recommendations

    def _check_invariants(self, event: DriftEvent, result: ImpactAnalysisResult) -> None:
        for resource in result.affected_resources:
            if not 1 <= resource.distance <= self.max_hops:
                raise ImpactInvariantError(
                    f"Affected resource {resource.resource_id} at distance "
                    f"{resource.distance} outside [1, {self.max_hops}]"
                )
        if result.blast_radius != self.calculate_blast_radius(result.affected_resources):
            raise ImpactInvariantError(
                f"Blast radius {result.blast_radius} does not match affected resources"
            )
        if result.severity.rank < event.severity.rank:
            raise ImpactInvariantError(
                f"Severity lowered from {event.severity.value} to {result.severity.value}"
            )

    def analyze_batch(self, events: Sequence[DriftEvent]) -> List[ImpactAnalysisResult]:
        """
        Analyze events independently and in order against the same graph.

        The first failing event (by input position) aborts the batch with a
        BatchAnalysisError; callers who want partial results should call
        analyze_impact per event instead.
        """
        events = list(events)
        logger.info("impact_batch_started", events=len(events), workers=self.max_workers)

        if self.max_workers <= 1 or len(events) <= 1:
            results = []
            for index, event in enumerate(events):
                try:
                    results.append(self.analyze_impact(event))
                except Exception as e:
                    raise BatchAnalysisError(event.id, index, e) from e
            return results

        return self._analyze_parallel(events)

    def _analyze_parallel(self, events: List[DriftEvent]) -> List[ImpactAnalysisResult]:
        results: List[Optional[ImpactAnalysisResult]] = [None] * len(events)
        failure: Optional[Tuple[int, Exception]] = None

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = [executor.submit(self.analyze_impact, event) for event in events]
            for index, future in enumerate(futures):
                try:
                    results[index] = future.result()
                except Exception as e:
                    failure = (index, e)
                    break
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        if failure is not None:
            index, error = failure
            raise BatchAnalysisError(events[index].id, index, error) from error
        return results
