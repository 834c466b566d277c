"""
DriftSentinel Main Entry Point

Ties graph loading, drift classification and impact analysis together for
one analysis cycle.
"""

from typing import List, Optional, Dict, Any, Union
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
import uuid

import structlog

from .config import Settings, get_settings
from .detection.drift_classifier import DriftClassifier, DriftReport
from .discovery.topology_graph import TopologyGraph, GraphDiagnostics
from .ingest import load_events, load_graph
from .models.drift import DriftEvent, ImpactAnalysisResult, Severity
from .risk.impact_analyzer import ImpactAnalyzer

logger = structlog.get_logger(__name__)


@dataclass
class DriftAnalysisRun:
    """Everything produced by one analysis cycle"""
    run_id: str
    started_at: datetime
    events: List[DriftEvent]
    results: List[ImpactAnalysisResult]
    drift_report: DriftReport
    diagnostics: GraphDiagnostics
    graph_stats: Dict[str, int] = field(default_factory=dict)

    @property
    def severity_summary(self) -> Dict[str, int]:
        summary = {severity.value: 0 for severity in reversed(list(Severity))}
        for result in self.results:
            summary[result.severity.value] += 1
        return summary

    @property
    def max_blast_radius(self) -> int:
        return max((r.blast_radius for r in self.results), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "graph": self.graph_stats,
            "diagnostics": self.diagnostics.to_dict(),
            "drift_report": self.drift_report.to_dict(),
            "severity_summary": self.severity_summary,
            "max_blast_radius": self.max_blast_radius,
            "results": [
                {"event": event.to_dict(), "impact": result.to_dict()}
                for event, result in zip(self.events, self.results)
            ],
        }


class DriftSentinel:
    """
    Main orchestrator for drift impact analysis.

    The graph for a cycle is built (or loaded) first and never changes while
    its events are analysed.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.classifier = DriftClassifier()

    def analyze(self, graph: TopologyGraph, events: List[DriftEvent]) -> DriftAnalysisRun:
        """Analyze a batch of drift events against a graph snapshot"""
        started_at = datetime.now(timezone.utc)

        diagnostics = graph.diagnostics()
        if self.settings.strict_graph:
            graph.validate()

        analyzer = ImpactAnalyzer(
            graph,
            max_hops=self.settings.max_hops,
            volume_threshold=self.settings.volume_threshold,
            max_workers=self.settings.batch_workers,
        )
        results = analyzer.analyze_batch(events)

        run = DriftAnalysisRun(
            run_id=f"run-{uuid.uuid4().hex[:8]}",
            started_at=started_at,
            events=list(events),
            results=results,
            drift_report=self.classifier.summarize(events),
            diagnostics=diagnostics,
            graph_stats={"node_count": graph.node_count, "edge_count": graph.edge_count},
        )
        logger.info(
            "analysis_run_completed",
            run_id=run.run_id,
            events=len(events),
            max_blast_radius=run.max_blast_radius,
        )
        return run

    def run_files(
        self,
        graph_path: Union[str, Path],
        events_path: Union[str, Path],
    ) -> DriftAnalysisRun:
        """Load a graph snapshot and drift events from disk, then analyze"""
        graph = load_graph(graph_path)
        events = load_events(events_path, self.classifier)
        return self.analyze(graph, events)


def main():
    """Main entry point"""
    from .cli.drift_cli import cli
    cli()


if __name__ == "__main__":
    main()
