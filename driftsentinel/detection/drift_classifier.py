"""
Drift Classifier

Turns a (resource, before, after) observation into a classified DriftEvent:
an attribute-level diff plus a seed severity based on drift kind and
resource type.
"""

from typing import Dict, List, Optional, Any
from datetime import datetime, timezone
from dataclasses import dataclass, replace
import json
import uuid
import structlog

from ..errors import DriftEventValidationError, InvalidAttributeError
from ..models.drift import (
    AttributeMap, AttributeValue, DiffEntry, DiffKind, DriftEvent, DriftType,
    RootCause, Severity, validate_attributes,
)

logger = structlog.get_logger(__name__)

# Resource types whose drift is security relevant
SECURITY_SENSITIVE_TYPES = frozenset({"security_group", "iam_role", "iam_policy", "kms_key"})


def is_security_resource(resource_type: str) -> bool:
    return resource_type in SECURITY_SENSITIVE_TYPES


def _normalize(value: Any) -> Any:
    # JSON has a single number type: 1 and 1.0 encode the same
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {key: _normalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    return value


def canonical_encoding(value: AttributeValue) -> str:
    """Order-independent JSON encoding used for deep equality"""
    try:
        return json.dumps(_normalize(value), sort_keys=True, separators=(",", ":"))
    except TypeError as e:
        raise InvalidAttributeError("$", value) from e


def values_equal(a: AttributeValue, b: AttributeValue) -> bool:
    return canonical_encoding(a) == canonical_encoding(b)


def compute_diff(
    before: Optional[AttributeMap],
    after: Optional[AttributeMap],
) -> Dict[str, DiffEntry]:
    """
    Flat diff keyed by top-level attribute name.

    Keys only in ``before`` are ``deleted``, keys only in ``after`` are
    ``added``, keys whose values differ are ``modified``. Nested differences
    are reported once at the top-level key. Unchanged keys are left out.
    """
    before = before or {}
    after = after or {}
    diff: Dict[str, DiffEntry] = {}

    for key, before_value in before.items():
        if key not in after:
            diff[key] = DiffEntry(kind=DiffKind.DELETED, before=before_value)
        elif not values_equal(before_value, after[key]):
            diff[key] = DiffEntry(kind=DiffKind.MODIFIED, before=before_value, after=after[key])

    for key, after_value in after.items():
        if key not in before:
            diff[key] = DiffEntry(kind=DiffKind.ADDED, after=after_value)

    return diff


def classify_severity(drift_type: DriftType, resource_type: str) -> Severity:
    """Seed severity for a drift, later escalated by impact analysis"""
    drift_type = DriftType(drift_type)

    if is_security_resource(resource_type):
        if drift_type == DriftType.DELETED:
            return Severity.CRITICAL
        return Severity.HIGH

    if drift_type == DriftType.DELETED:
        return Severity.HIGH
    if drift_type == DriftType.MODIFIED:
        return Severity.MEDIUM
    return Severity.LOW


def infer_drift_type(
    before: Optional[AttributeMap],
    after: Optional[AttributeMap],
) -> DriftType:
    """created when there is no before state, deleted when there is no after state"""
    if before is None and after is None:
        raise DriftEventValidationError("Cannot infer drift type without before or after state")
    if before is None:
        return DriftType.CREATED
    if after is None:
        return DriftType.DELETED
    return DriftType.MODIFIED


@dataclass
class DriftReport:
    """Summary of a set of classified drift events"""
    report_id: str
    generated_at: datetime
    events: List[DriftEvent]
    summary: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "generated_at": self.generated_at.isoformat(),
            "total_drifts": len(self.events),
            "summary": self.summary,
            "drifts": [
                {
                    "id": e.id,
                    "resource_id": e.resource_id,
                    "resource_type": e.resource_type,
                    "type": e.type.value,
                    "severity": e.severity.value,
                    "changed_fields": sorted(e.diff),
                    "timestamp": e.timestamp.isoformat(),
                }
                for e in self.events
            ],
        }


class DriftClassifier:
    """
    Classifies raw drift observations.

    Used by drift-detection adapters that only report before/after state, and
    to stamp events that arrive pre-typed but without a diff or severity.
    """

    def classify(
        self,
        resource_id: str,
        resource_type: str,
        before: Optional[AttributeMap],
        after: Optional[AttributeMap],
        drift_type: Optional[DriftType] = None,
        root_cause: Optional[RootCause] = None,
        event_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> DriftEvent:
        """Build a DriftEvent with type, diff and seed severity filled in"""
        validate_attributes(before)
        validate_attributes(after)

        drift_type = DriftType(drift_type) if drift_type else infer_drift_type(before, after)
        event = DriftEvent(
            id=event_id or f"drift-{uuid.uuid4().hex[:12]}",
            resource_id=resource_id,
            resource_type=resource_type,
            type=drift_type,
            severity=classify_severity(drift_type, resource_type),
            timestamp=timestamp or datetime.now(timezone.utc),
            before=before,
            after=after,
            diff=compute_diff(before, after),
            root_cause=root_cause,
        )
        event.validate()

        logger.debug(
            "drift_classified",
            event_id=event.id,
            resource_id=resource_id,
            drift_type=drift_type.value,
            severity=event.severity.value,
            changed_fields=len(event.diff),
        )
        return event

    def stamp(self, event: DriftEvent, reseed_severity: bool = True) -> DriftEvent:
        """
        Return a copy of a pre-typed event with its diff computed and, unless
        reseed_severity is False, its seed severity reassigned.
        """
        validate_attributes(event.before)
        validate_attributes(event.after)

        changes: Dict[str, Any] = {}
        if not event.diff and (event.before or event.after):
            changes["diff"] = compute_diff(event.before, event.after)
        if reseed_severity:
            changes["severity"] = classify_severity(event.type, event.resource_type)
        return replace(event, **changes) if changes else event

    def summarize(self, events: List[DriftEvent]) -> DriftReport:
        """Count events per severity"""
        summary = {severity.value: 0 for severity in reversed(list(Severity))}
        for event in events:
            summary[event.severity.value] += 1

        return DriftReport(
            report_id=f"drift-report-{uuid.uuid4().hex[:8]}",
            generated_at=datetime.now(timezone.utc),
            events=list(events),
            summary=summary,
        )
