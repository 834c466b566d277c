"""
Document Loaders

Reads topology graph snapshots and drift event documents (JSON or YAML)
produced by scanners and drift-detection adapters, and validates them before
they become engine objects.
"""

from typing import Any, Dict, List, Optional, Union
from datetime import date, datetime, timezone
from pathlib import Path
import json
import uuid

import structlog
import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .errors import DocumentLoadError, DriftSentinelError
from .detection.drift_classifier import DriftClassifier
from .discovery.topology_graph import TopologyGraph
from .models.drift import DiffEntry, DiffKind, DriftEvent, DriftType, RootCause, Severity
from .models.topology import Edge, ResourceNode

logger = structlog.get_logger(__name__)


class NodeDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: str = ""
    provider: str = ""
    region: str = ""
    name: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    tags: Dict[str, str] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_node(self) -> ResourceNode:
        return ResourceNode(
            id=self.id,
            type=self.type,
            provider=self.provider,
            region=self.region,
            name=self.name,
            metadata=dict(self.metadata),
            tags=dict(self.tags),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class EdgeDocument(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    source: str = Field(alias="from")
    target: str = Field(alias="to")
    type: str = ""
    weight: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    def to_edge(self) -> Edge:
        return Edge(
            source=self.source,
            target=self.target,
            type=self.type,
            weight=self.weight,
            metadata=dict(self.metadata),
            confidence=self.confidence,
        )


class GraphDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nodes: List[NodeDocument] = Field(default_factory=list)
    edges: List[EdgeDocument] = Field(default_factory=list)

    def to_graph(self) -> TopologyGraph:
        graph = TopologyGraph()
        for node in self.nodes:
            graph.add_node(node.to_node())
        for edge in self.edges:
            graph.add_edge(edge.to_edge())
        return graph


class DiffEntryDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # "type" is accepted for documents written by older detectors
    kind: DiffKind = Field(validation_alias=AliasChoices("kind", "type"))
    before: Any = None
    after: Any = None

    def to_entry(self) -> DiffEntry:
        return DiffEntry(kind=self.kind, before=self.before, after=self.after)


class RootCauseDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    audit_event_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("audit_event_id", "cloudtrail_event_id"),
    )
    event_name: Optional[str] = None
    user_identity: Optional[str] = None
    user_arn: Optional[str] = None
    source_ip: Optional[str] = None
    timestamp: Optional[datetime] = None

    def to_root_cause(self) -> RootCause:
        return RootCause(**self.model_dump())


class DriftEventDocument(BaseModel):
    """
    A drift event as reported by a detection adapter.

    Adapters may report only before/after state, or a pre-classified type and
    severity. Whatever is missing is filled in by the DriftClassifier.
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    resource_id: str
    resource_type: str = ""
    type: Optional[DriftType] = None
    severity: Optional[Severity] = None
    timestamp: Optional[datetime] = None
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    diff: Optional[Dict[str, DiffEntryDocument]] = None
    root_cause: Optional[RootCauseDocument] = None

    def to_event(self, classifier: DriftClassifier) -> DriftEvent:
        root_cause = self.root_cause.to_root_cause() if self.root_cause else None
        event_id = self.id or f"drift-{uuid.uuid4().hex[:12]}"

        if self.type is None:
            return classifier.classify(
                resource_id=self.resource_id,
                resource_type=self.resource_type,
                before=self.before,
                after=self.after,
                root_cause=root_cause,
                event_id=event_id,
                timestamp=self.timestamp,
            )

        event = DriftEvent(
            id=event_id,
            resource_id=self.resource_id,
            resource_type=self.resource_type,
            type=self.type,
            severity=self.severity or Severity.LOW,
            timestamp=self.timestamp or datetime.now(timezone.utc),
            before=self.before,
            after=self.after,
            diff={key: entry.to_entry() for key, entry in (self.diff or {}).items()},
            root_cause=root_cause,
        )
        return classifier.stamp(event, reseed_severity=self.severity is None)


def _iso_dates(value: Any) -> Any:
    # YAML reads unquoted dates and timestamps as date objects
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _iso_dates(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_iso_dates(item) for item in value]
    return value


def load_document(path: Union[str, Path]) -> Any:
    """Parse a JSON or YAML file (chosen by extension)"""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentLoadError(str(path), e.strerror or str(e)) from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            return _iso_dates(yaml.safe_load(text))
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise DocumentLoadError(str(path), f"invalid document: {e}") from e


def parse_graph(data: Any, source: str = "<graph>") -> TopologyGraph:
    try:
        document = GraphDocument.model_validate(data or {})
    except ValidationError as e:
        raise DocumentLoadError(source, f"invalid graph: {e}") from e
    return document.to_graph()


def parse_events(
    data: Any,
    source: str = "<events>",
    classifier: Optional[DriftClassifier] = None,
) -> List[DriftEvent]:
    """Accepts a list of events or a {"drifts": [...]} wrapper"""
    classifier = classifier or DriftClassifier()
    if isinstance(data, dict):
        data = data.get("drifts", data.get("events"))
    if data is None:
        data = []
    if not isinstance(data, list):
        raise DocumentLoadError(source, "expected a list of drift events")

    events = []
    for position, item in enumerate(data):
        try:
            document = DriftEventDocument.model_validate(item)
            events.append(document.to_event(classifier))
        except ValidationError as e:
            raise DocumentLoadError(source, f"invalid drift event at position {position}: {e}") from e
        except DriftSentinelError as e:
            raise DocumentLoadError(source, f"drift event at position {position}: {e}") from e
    return events


def load_graph(path: Union[str, Path]) -> TopologyGraph:
    graph = parse_graph(load_document(path), str(path))
    logger.info("graph_loaded", path=str(path), nodes=graph.node_count, edges=graph.edge_count)
    return graph


def load_events(
    path: Union[str, Path],
    classifier: Optional[DriftClassifier] = None,
) -> List[DriftEvent]:
    events = parse_events(load_document(path), str(path), classifier)
    logger.info("events_loaded", path=str(path), events=len(events))
    return events


def dump_json(data: Any, path: Union[str, Path]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
