"""Record models for workflow data."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime

from dateutil import parser as date_parser


class RecordStatus(str, Enum):
    """Outcome of a record during a transfer."""
    PENDING = "pending"
    TRANSFERRED = "transferred"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ValidationIssue:
    """A problem a validator found on a record."""
    field: str
    message: str
    error_type: str = "validation"
    severity: str = "error"  # error, warning, info
    value: Optional[Any] = None
    suggested_fix: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "field": self.field,
            "message": self.message,
            "error_type": self.error_type,
            "severity": self.severity,
            "value": self.value,
            "suggested_fix": self.suggested_fix,
        }


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return date_parser.isoparse(str(value))


def _tag_names(raw_tags: Any) -> List[str]:
    names = []
    for tag in raw_tags or []:
        if isinstance(tag, dict):
            name = tag.get("name")
            if name:
                names.append(str(name))
        elif tag is not None:
            names.append(str(tag))
    return names


@dataclass(frozen=True)
class Record:
    """
    Snapshot of a workflow as returned by one endpoint.

    The body holds the nodes/connections graph and settings. Only
    validators look inside it.
    """
    id: str
    name: str
    active: bool = False
    tags: List[str] = field(default_factory=list)
    body: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        """Create from an endpoint payload."""
        body = {
            key: data[key]
            for key in ("nodes", "connections", "settings", "staticData", "pinData")
            if key in data
        }
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            active=bool(data.get("active", False)),
            tags=_tag_names(data.get("tags")),
            body=body,
            created_at=_parse_timestamp(data.get("createdAt") or data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updatedAt") or data.get("updated_at")),
        )

    @property
    def nodes(self) -> List[Dict[str, Any]]:
        return self.body.get("nodes") or []

    @property
    def connections(self) -> Dict[str, Any]:
        return self.body.get("connections") or {}

    @property
    def settings(self) -> Optional[Dict[str, Any]]:
        return self.body.get("settings")

    def has_credentials(self) -> bool:
        """Check if any node references stored credentials."""
        return any(node.get("credentials") for node in self.nodes if isinstance(node, dict))

    def to_payload(self) -> Dict[str, Any]:
        """Body accepted by the target's create/update call."""
        return {
            "name": self.name,
            "nodes": self.nodes,
            "connections": self.connections,
            "settings": self.settings or {},
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "active": self.active,
            "tags": list(self.tags),
            "nodes": len(self.nodes),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class TransferItem:
    """Outcome for one source record."""
    record_id: str
    name: str
    status: RecordStatus = RecordStatus.PENDING
    reason: Optional[str] = None
    target_id: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    node_count: int = 0
    issues: List[ValidationIssue] = field(default_factory=list)

    @classmethod
    def for_record(cls, record: Record) -> "TransferItem":
        return cls(
            record_id=record.id,
            name=record.name,
            tags=list(record.tags),
            node_count=len(record.nodes),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "record_id": self.record_id,
            "name": self.name,
            "status": self.status.value,
            "reason": self.reason,
            "target_id": self.target_id,
            "tags": self.tags,
            "node_count": self.node_count,
            "issues": [i.to_dict() for i in self.issues],
        }
