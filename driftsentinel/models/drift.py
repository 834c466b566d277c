"""
Drift Data Models

Drift events, attribute diffs, and impact analysis results.
"""

from enum import Enum
from typing import Dict, List, Optional, Any, Tuple, Union
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..errors import DriftEventValidationError, InvalidAttributeError


# JSON-shaped value held in resource metadata and before/after snapshots
AttributeValue = Union[
    str, int, float, bool, None, List["AttributeValue"], Dict[str, "AttributeValue"]
]
AttributeMap = Dict[str, AttributeValue]


def validate_attribute_value(value: Any, path: str = "$") -> None:
    """Raise InvalidAttributeError unless value is a JSON-shaped tree"""
    if value is None or isinstance(value, (str, bool, int, float)):
        return
    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            validate_attribute_value(item, f"{path}[{index}]")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidAttributeError(f"{path}.<key>", key)
            validate_attribute_value(item, f"{path}.{key}")
        return
    raise InvalidAttributeError(path, value)


def validate_attributes(attributes: Optional[AttributeMap]) -> None:
    """Validate a whole attribute map; None is allowed"""
    if attributes is None:
        return
    if not isinstance(attributes, dict):
        raise InvalidAttributeError("$", attributes)
    validate_attribute_value(attributes)


class Severity(str, Enum):
    """Severity ladder: low < medium < high < critical"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_LADDER.index(self)

    def escalate(self, cap: Optional["Severity"] = None) -> "Severity":
        """
        Move one step up the ladder. Critical stays critical.
        With a cap the step never goes past it, and a severity already
        above the cap is left where it is.
        """
        if cap is not None and self.rank >= cap.rank:
            return self
        return _SEVERITY_LADDER[min(self.rank + 1, len(_SEVERITY_LADDER) - 1)]


_SEVERITY_LADDER: Tuple[Severity, ...] = (
    Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL,
)


class DriftType(str, Enum):
    """Kind of drift observed on a resource"""
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


class DiffKind(str, Enum):
    """Kind of change on a single attribute"""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class DiffEntry:
    """Change on one top-level attribute"""
    kind: DiffKind
    before: AttributeValue = None
    after: AttributeValue = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind.value}
        if self.kind in (DiffKind.DELETED, DiffKind.MODIFIED):
            data["before"] = self.before
        if self.kind in (DiffKind.ADDED, DiffKind.MODIFIED):
            data["after"] = self.after
        return data


@dataclass
class RootCause:
    """Who and what caused a drift, from the cloud audit log"""
    audit_event_id: Optional[str] = None
    event_name: Optional[str] = None
    user_identity: Optional[str] = None
    user_arn: Optional[str] = None
    source_ip: Optional[str] = None
    timestamp: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "audit_event_id": self.audit_event_id,
            "event_name": self.event_name,
            "user_identity": self.user_identity,
            "user_arn": self.user_arn,
            "source_ip": self.source_ip,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class DriftEvent:
    """A drift observed on one resource"""
    id: str
    resource_id: str
    resource_type: str
    type: DriftType
    severity: Severity = Severity.LOW
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    before: Optional[AttributeMap] = None
    after: Optional[AttributeMap] = None
    diff: Dict[str, DiffEntry] = field(default_factory=dict)
    root_cause: Optional[RootCause] = None

    def validate(self) -> None:
        """Fail fast on events missing required fields"""
        if not self.id:
            raise DriftEventValidationError("Drift event has no ID", event_id=self.id)
        if not self.resource_id:
            raise DriftEventValidationError(
                f"Drift event {self.id} has no resource ID", event_id=self.id
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "resource_id": self.resource_id,
            "resource_type": self.resource_type,
            "type": self.type.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "before": self.before,
            "after": self.after,
            "diff": {key: entry.to_dict() for key, entry in self.diff.items()},
            "root_cause": self.root_cause.to_dict() if self.root_cause else None,
        }


@dataclass(frozen=True)
class AffectedResource:
    """A resource reached by the blast-radius traversal"""
    resource_id: str
    resource_type: str
    relation_type: str
    distance: int
    impact_description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_id": self.resource_id,
            "resource_type": self.resource_type,
            "relation_type": self.relation_type,
            "distance": self.distance,
            "impact_description": self.impact_description,
        }


@dataclass(frozen=True)
class ImpactAnalysisResult:
    """Outcome of analysing one drift event against one graph snapshot"""
    drift_event_id: str
    affected_resources: Tuple[AffectedResource, ...]
    blast_radius: int
    recommendations: Tuple[str, ...]
    severity: Severity

    @property
    def affected_resource_count(self) -> int:
        return len(self.affected_resources)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "drift_event_id": self.drift_event_id,
            "affected_resource_count": self.affected_resource_count,
            "affected_resources": [r.to_dict() for r in self.affected_resources],
            "blast_radius": self.blast_radius,
            "recommendations": list(self.recommendations),
            "severity": self.severity.value,
        }
