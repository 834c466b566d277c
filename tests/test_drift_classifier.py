"""
Drift classifier tests
"""

from datetime import datetime, timezone

import pytest

from driftsentinel.detection.drift_classifier import (
    DriftClassifier, classify_severity, compute_diff, infer_drift_type,
)
from driftsentinel.errors import DriftEventValidationError, InvalidAttributeError
from driftsentinel.models.drift import (
    DiffEntry, DiffKind, DriftEvent, DriftType, RootCause, Severity,
)


class TestComputeDiff:
    """Tests for the flat attribute diff"""

    def test_added_and_modified_keys(self):
        """Unchanged keys are left out, changed and new keys are tagged"""
        diff = compute_diff({"a": 1, "b": 2}, {"a": 1, "b": 3, "c": 4})

        assert diff == {
            "b": DiffEntry(kind=DiffKind.MODIFIED, before=2, after=3),
            "c": DiffEntry(kind=DiffKind.ADDED, after=4),
        }
        assert "a" not in diff

    def test_deleted_keys(self):
        """Keys missing from after are deleted, including ones holding null"""
        diff = compute_diff({"name": "web", "owner": None}, {})

        assert diff["name"] == DiffEntry(kind=DiffKind.DELETED, before="web")
        assert diff["owner"].kind == DiffKind.DELETED
        assert diff["owner"].to_dict() == {"kind": "deleted", "before": None}

    def test_nested_key_order_does_not_matter(self):
        """Maps are compared on a canonical encoding"""
        before = {"tags": {"env": "prod", "team": "core"}, "ports": [22, 443]}
        after = {"tags": {"team": "core", "env": "prod"}, "ports": [22, 443]}

        assert compute_diff(before, after) == {}

    def test_nested_change_reported_at_top_level(self):
        """A change deep inside a value is one modified entry"""
        before = {"ingress": [{"port": 22, "cidr": "10.0.0.0/8"}]}
        after = {"ingress": [{"port": 22, "cidr": "0.0.0.0/0"}]}

        diff = compute_diff(before, after)

        assert list(diff) == ["ingress"]
        assert diff["ingress"].kind == DiffKind.MODIFIED

    def test_list_order_matters(self):
        """Lists are ordered values"""
        diff = compute_diff({"ports": [22, 443]}, {"ports": [443, 22]})

        assert diff["ports"].kind == DiffKind.MODIFIED

    def test_integral_floats_equal_ints(self):
        """Numbers compare as JSON numbers"""
        assert compute_diff({"size": 20}, {"size": 20.0}) == {}
        assert compute_diff({"size": 20}, {"size": 20.5})["size"].kind == DiffKind.MODIFIED

    def test_bool_is_not_a_number(self):
        """true and 1 encode differently"""
        assert compute_diff({"flag": True}, {"flag": 1})["flag"].kind == DiffKind.MODIFIED

    def test_absent_snapshots(self):
        """A missing snapshot diffs like an empty one"""
        assert compute_diff(None, {"a": 1}) == {"a": DiffEntry(kind=DiffKind.ADDED, after=1)}
        assert compute_diff({"a": 1}, None) == {"a": DiffEntry(kind=DiffKind.DELETED, before=1)}
        assert compute_diff(None, None) == {}

    def test_entry_serialization(self):
        """Only the sides relevant to the change kind are serialized"""
        assert DiffEntry(DiffKind.ADDED, after=4).to_dict() == {"kind": "added", "after": 4}
        assert DiffEntry(DiffKind.MODIFIED, 2, 3).to_dict() == {
            "kind": "modified", "before": 2, "after": 3,
        }


class TestClassifySeverity:
    """Tests for the seed severity policy"""

    @pytest.mark.parametrize("drift_type,resource_type,expected", [
        (DriftType.DELETED, "security_group", Severity.CRITICAL),
        (DriftType.DELETED, "kms_key", Severity.CRITICAL),
        (DriftType.MODIFIED, "iam_role", Severity.HIGH),
        (DriftType.CREATED, "iam_policy", Severity.HIGH),
        (DriftType.DELETED, "ec2", Severity.HIGH),
        (DriftType.MODIFIED, "ec2", Severity.MEDIUM),
        (DriftType.CREATED, "s3_bucket", Severity.LOW),
    ])
    def test_policy(self, drift_type, resource_type, expected):
        assert classify_severity(drift_type, resource_type) == expected

    def test_accepts_plain_strings(self):
        assert classify_severity("deleted", "vpc") == Severity.HIGH


class TestInferDriftType:

    def test_inference(self):
        assert infer_drift_type(None, {"a": 1}) == DriftType.CREATED
        assert infer_drift_type({"a": 1}, None) == DriftType.DELETED
        assert infer_drift_type({"a": 1}, {"a": 2}) == DriftType.MODIFIED
        assert infer_drift_type({}, {}) == DriftType.MODIFIED

    def test_no_state_at_all(self):
        with pytest.raises(DriftEventValidationError):
            infer_drift_type(None, None)


class TestDriftClassifier:
    """Tests for turning observations into classified events"""

    def test_classify_modified_security_group(self):
        """Type, diff and seed severity are filled in"""
        root_cause = RootCause(user_identity="alice", source_ip="203.0.113.7")
        event = DriftClassifier().classify(
            resource_id="aws:sg:sg-789",
            resource_type="security_group",
            before={"ingress": ["10.0.0.0/8:22"]},
            after={"ingress": ["0.0.0.0/0:22"]},
            root_cause=root_cause,
            event_id="drift-1",
        )

        assert event.id == "drift-1"
        assert event.type == DriftType.MODIFIED
        assert event.severity == Severity.HIGH
        assert event.diff["ingress"].kind == DiffKind.MODIFIED
        assert event.root_cause.user_identity == "alice"

    def test_classify_generates_id(self):
        event = DriftClassifier().classify("aws:ec2:i-1", "ec2", None, {"state": "running"})

        assert event.id.startswith("drift-")
        assert event.type == DriftType.CREATED
        assert event.severity == Severity.LOW

    def test_explicit_drift_type_wins(self):
        """A pre-classified type is kept even if the snapshots suggest otherwise"""
        event = DriftClassifier().classify(
            "aws:ec2:i-1", "ec2", {"a": 1}, {"a": 2}, drift_type=DriftType.DELETED,
        )

        assert event.type == DriftType.DELETED
        assert event.severity == Severity.HIGH

    def test_empty_resource_id_fails_fast(self):
        with pytest.raises(DriftEventValidationError):
            DriftClassifier().classify("", "ec2", {"a": 1}, {"a": 2})

    def test_rejects_non_json_values(self):
        """Attribute maps must be JSON-shaped"""
        with pytest.raises(InvalidAttributeError) as exc_info:
            DriftClassifier().classify("aws:ec2:i-1", "ec2", {"ports": {22, 443}}, {})

        assert exc_info.value.path == "$.ports"

    def test_stamp_fills_missing_diff_and_severity(self):
        """Pre-typed events get a diff; severity is reseeded on request"""
        event = DriftEvent(
            id="drift-2",
            resource_id="aws:iam_role:deploy",
            resource_type="iam_role",
            type=DriftType.MODIFIED,
            before={"policy": "read"},
            after={"policy": "admin"},
        )
        classifier = DriftClassifier()

        stamped = classifier.stamp(event)
        kept = classifier.stamp(event, reseed_severity=False)

        assert stamped.diff["policy"].kind == DiffKind.MODIFIED
        assert stamped.severity == Severity.HIGH
        assert kept.severity == Severity.LOW
        assert event.diff == {}

    def test_summarize(self):
        """The drift report counts events per severity"""
        classifier = DriftClassifier()
        events = [
            classifier.classify("aws:sg:a", "security_group", {"a": 1}, None),
            classifier.classify("aws:ec2:b", "ec2", {"a": 1}, {"a": 2}),
            classifier.classify("aws:ec2:c", "ec2", {"a": 1}, {"a": 3}),
        ]

        report = classifier.summarize(events)
        data = report.to_dict()

        assert report.summary == {"critical": 1, "high": 0, "medium": 2, "low": 0}
        assert data["total_drifts"] == 3
        assert data["drifts"][1]["changed_fields"] == ["a"]


class TestDriftEvent:

    def test_to_dict(self):
        event = DriftEvent(
            id="drift-3",
            resource_id="aws:ec2:i-1",
            resource_type="ec2",
            type=DriftType.DELETED,
            severity=Severity.HIGH,
            timestamp=datetime(2026, 1, 2, tzinfo=timezone.utc),
            before={"a": 1},
            diff={"a": DiffEntry(DiffKind.DELETED, before=1)},
        )

        data = event.to_dict()

        assert data["type"] == "deleted"
        assert data["severity"] == "high"
        assert data["timestamp"] == "2026-01-02T00:00:00+00:00"
        assert data["diff"] == {"a": {"kind": "deleted", "before": 1}}
        assert data["root_cause"] is None
