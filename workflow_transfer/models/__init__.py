"""Data models for workflow transfer."""

from .record import (
    Record,
    RecordStatus,
    TransferItem,
    ValidationIssue,
)
from .transfer import (
    ReportFile,
    TransferFilters,
    TransferOptions,
    TransferProgress,
    TransferResult,
    TransferStatus,
)
from .validation import (
    DuplicateGroup,
    EnrichedDuplicateGroup,
    ValidationConfig,
    ValidationReport,
    ValidationResult,
)

__all__ = [
    "Record",
    "RecordStatus",
    "TransferItem",
    "ValidationIssue",
    "ReportFile",
    "TransferFilters",
    "TransferOptions",
    "TransferProgress",
    "TransferResult",
    "TransferStatus",
    "DuplicateGroup",
    "EnrichedDuplicateGroup",
    "ValidationConfig",
    "ValidationReport",
    "ValidationResult",
]
