"""
Topology Data Models

Resource nodes and typed relationship edges of the topology graph.
"""

from enum import Enum
from typing import Dict, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime


class RelationType(str, Enum):
    """Semantic category of an edge"""
    NETWORK = "network"
    DEPENDENCY = "dependency"
    OWNERSHIP = "ownership"
    OTHER = "other"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "RelationType":
        """Map a raw edge type to a known relation, or OTHER"""
        for member in cls:
            if member is not cls.OTHER and member.value == value:
                return member
        return cls.OTHER


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass(frozen=True)
class ResourceNode:
    """
    A cloud resource in the topology graph.

    The ID follows ``<provider>:<type>:<native-id>``, e.g. ``aws:ec2:i-123456``.
    """
    id: str
    type: str
    provider: str = ""
    region: str = ""
    name: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "provider": self.provider,
            "region": self.region,
            "name": self.name,
            "metadata": dict(self.metadata),
            "tags": dict(self.tags),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceNode":
        return cls(
            id=data["id"],
            type=data.get("type", ""),
            provider=data.get("provider", ""),
            region=data.get("region", ""),
            name=data.get("name", ""),
            metadata=dict(data.get("metadata") or {}),
            tags=dict(data.get("tags") or {}),
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )


@dataclass(frozen=True)
class Edge:
    """
    Directed relationship between two resources.

    Stored directionally, traversed in both directions. The raw ``type`` is kept
    as given so unrecognised relation types survive a load/dump cycle.
    """
    source: str
    target: str
    type: str
    weight: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    confidence: Optional[float] = None  # set on heuristically inferred edges

    @property
    def relation(self) -> RelationType:
        return RelationType.from_value(self.type)

    def other_end(self, node_id: str) -> str:
        """The endpoint opposite to node_id"""
        return self.target if self.source == node_id else self.source

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "from": self.source,
            "to": self.target,
            "type": self.type,
        }
        if self.weight is not None:
            data["weight"] = self.weight
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        return cls(
            source=data["from"],
            target=data["to"],
            type=data.get("type", ""),
            weight=data.get("weight"),
            metadata=dict(data.get("metadata") or {}),
            confidence=data.get("confidence"),
        )
