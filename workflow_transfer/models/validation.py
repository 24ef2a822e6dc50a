"""Internal-ID validation models."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..errors import ConfigError

DEFAULT_ID_PATTERN = r"\([A-Z]+-[A-Z]+-\d{3}\)"
DEFAULT_LOG_PATH = ".workflow-transfer/logs/validation.log"


class ValidationConfig(BaseModel):
    """Settings for the internal-ID duplicate check."""
    model_config = ConfigDict(
        extra="forbid", frozen=True, populate_by_name=True, alias_generator=to_camel
    )

    id_pattern: str = DEFAULT_ID_PATTERN
    strict: bool = True
    max_duplicates: int = Field(default=100, ge=1)
    log_path: str = DEFAULT_LOG_PATH

    @field_validator("id_pattern")
    @classmethod
    def _compile_pattern(cls, value: str) -> str:
        try:
            re.compile(value, re.IGNORECASE)
        except re.error as e:
            raise ValueError(f"invalid ID pattern {value!r}: {e}")
        return value

    @property
    def compiled_pattern(self) -> "re.Pattern":
        return re.compile(self.id_pattern, re.IGNORECASE)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]] = None) -> "ValidationConfig":
        try:
            return cls.model_validate(data or {})
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid validation config: {e}") from e


@dataclass
class DuplicateGroup:
    """Records sharing one internal ID."""
    internal_id: str
    record_ids: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.record_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "internal_id": self.internal_id,
            "record_ids": list(self.record_ids),
            "count": self.count,
        }


@dataclass
class EnrichedDuplicateGroup(DuplicateGroup):
    """A duplicate group with proposed replacement IDs."""
    suggestions: List[str] = field(default_factory=list)

    def suggestion_for(self, index: int) -> Optional[str]:
        """Suggestion paired with the record at ``index``; the first keeps its ID."""
        if index < 1 or index > len(self.suggestions):
            return None
        return self.suggestions[index - 1]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["suggestions"] = list(self.suggestions)
        return data


@dataclass
class ValidationResult:
    """Outcome of a duplicate check."""
    valid: bool
    duplicates: List[EnrichedDuplicateGroup] = field(default_factory=list)
    total_records: int = 0
    timestamp: datetime = field(default_factory=datetime.utcnow)
    truncated: bool = False

    @property
    def affected_records(self) -> int:
        return sum(g.count for g in self.duplicates)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "total_records": self.total_records,
            "timestamp": self.timestamp.isoformat(),
            "truncated": self.truncated,
            "duplicates": [g.to_dict() for g in self.duplicates],
        }


@dataclass
class ValidationReport:
    """Advisory report returned instead of raising."""
    timestamp: datetime
    total_records: int
    duplicates_found: int
    duplicates: List[EnrichedDuplicateGroup] = field(default_factory=list)
    truncated: bool = False

    @property
    def valid(self) -> bool:
        return self.duplicates_found == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "total_records": self.total_records,
            "duplicates_found": self.duplicates_found,
            "valid": self.valid,
            "truncated": self.truncated,
            "duplicates": [g.to_dict() for g in self.duplicates],
        }
