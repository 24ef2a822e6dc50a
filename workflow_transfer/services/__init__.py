"""Validation services for internal workflow IDs."""

from .duplicate_detector import DuplicateDetector
from .id_extractor import IDExtractor, IDScan
from .message_formatter import MessageFormatter
from .run_log import RunLog
from .suggestion_engine import SuggestionEngine
from .validation_service import ValidationReportGenerator, ValidationService

__all__ = [
    "DuplicateDetector",
    "IDExtractor",
    "IDScan",
    "MessageFormatter",
    "RunLog",
    "SuggestionEngine",
    "ValidationReportGenerator",
    "ValidationService",
]
