"""Transfer execution models."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..errors import ConfigError
from .record import Record, RecordStatus, TransferItem

logger = logging.getLogger(__name__)

MIN_PARALLELISM = 1
MAX_PARALLELISM = 10


class TransferStatus(str, Enum):
    """Lifecycle state of a transfer run."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TransferFilters(BaseModel):
    """Restricts which source records are considered."""
    model_config = ConfigDict(
        extra="forbid", frozen=True, populate_by_name=True, alias_generator=to_camel
    )

    workflow_ids: List[str] = Field(default_factory=list)
    workflow_names: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    exclude_tags: List[str] = Field(default_factory=list)

    def matches(self, record: Record) -> bool:
        """Check whether a record passes every configured filter."""
        if self.workflow_ids and record.id not in self.workflow_ids:
            return False
        if self.workflow_names and record.name not in self.workflow_names:
            return False
        if self.tags and not any(tag in self.tags for tag in record.tags):
            return False
        if self.exclude_tags and any(tag in self.exclude_tags for tag in record.tags):
            return False
        return True

    def apply(self, records: List[Record]) -> List[Record]:
        return [r for r in records if self.matches(r)]


class TransferOptions(BaseModel):
    """Options for one transfer invocation. Immutable once validated."""
    model_config = ConfigDict(
        extra="forbid", frozen=True, populate_by_name=True, alias_generator=to_camel
    )

    filters: TransferFilters = Field(default_factory=TransferFilters)
    dry_run: bool = False
    parallelism: int = 3
    deduplicator: str = "standard"
    validators: List[str] = Field(default_factory=lambda: ["integrity"])
    reporters: List[str] = Field(default_factory=lambda: ["markdown"])
    skip_credentials: bool = False

    @field_validator("parallelism")
    @classmethod
    def _clamp_parallelism(cls, value: int) -> int:
        clamped = max(MIN_PARALLELISM, min(MAX_PARALLELISM, value))
        if clamped != value:
            logger.warning(
                f"Parallelism {value} out of range [{MIN_PARALLELISM}, {MAX_PARALLELISM}], using {clamped}"
            )
        return clamped

    @field_validator("deduplicator")
    @classmethod
    def _require_deduplicator(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("deduplicator name must not be empty")
        return value.strip()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]] = None) -> "TransferOptions":
        """Validate raw options and apply defaults."""
        try:
            return cls.model_validate(data or {})
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid transfer options: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


@dataclass
class TransferProgress:
    """Progress counters read by progress displays."""
    status: TransferStatus = TransferStatus.IDLE
    processed: int = 0
    total: int = 0
    transferred: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.processed / self.total * 100, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "processed": self.processed,
            "total": self.total,
            "transferred": self.transferred,
            "skipped": self.skipped,
            "failed": self.failed,
            "percentage": self.percentage,
        }


@dataclass
class ReportFile:
    """An artifact produced by a reporter plugin."""
    reporter: str
    path: str
    format: str

    def to_dict(self) -> Dict[str, Any]:
        return {"reporter": self.reporter, "path": self.path, "format": self.format}


@dataclass
class TransferResult:
    """Aggregated outcome of a transfer run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: TransferStatus = TransferStatus.IDLE
    dry_run: bool = False
    total: int = 0
    transferred: int = 0
    skipped: int = 0
    failed: int = 0
    items: List[TransferItem] = field(default_factory=list)
    reports: List[ReportFile] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled: bool = False
    aborted_reason: Optional[str] = None
    source_url: Optional[str] = None
    target_url: Optional[str] = None

    @property
    def issues(self) -> List[TransferItem]:
        """Items that were skipped or failed."""
        return [
            item for item in self.items
            if item.status in (RecordStatus.SKIPPED, RecordStatus.FAILED)
        ]

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "status": self.status.value,
            "dry_run": self.dry_run,
            "total": self.total,
            "transferred": self.transferred,
            "skipped": self.skipped,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "aborted_reason": self.aborted_reason,
            "source_url": self.source_url,
            "target_url": self.target_url,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "items": [i.to_dict() for i in self.items],
            "issues": [
                {"record_id": i.record_id, "name": i.name, "reason": i.reason}
                for i in self.issues
            ],
            "reports": [r.to_dict() for r in self.reports],
        }
