"""Internal-ID validation over a set of records."""

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..errors import ValidationError
from ..models.record import Record
from ..models.validation import (
    ValidationConfig,
    ValidationReport,
    ValidationResult,
)
from .duplicate_detector import DuplicateDetector
from .id_extractor import IDExtractor
from .message_formatter import MessageFormatter
from .run_log import RunLog
from .suggestion_engine import SuggestionEngine

logger = logging.getLogger(__name__)


class ValidationService:
    """
    Detects records that share an internal ID.

    Any duplicate fails validation. The ``strict`` flag is carried in the
    configuration but does not relax this.
    """

    def __init__(
        self,
        config: Optional[ValidationConfig] = None,
        run_log: Optional[RunLog] = None,
        formatter: Optional[MessageFormatter] = None
    ):
        self.config = config or ValidationConfig()
        self.extractor = IDExtractor(self.config.compiled_pattern)
        self.detector = DuplicateDetector()
        self.suggestions = SuggestionEngine()
        self.formatter = formatter or MessageFormatter()
        self.run_log = run_log

    def validate(self, records: List[Record]) -> ValidationResult:
        """
        Validate records, raising ValidationError if any internal ID repeats.

        Returns:
            ValidationResult for a clean record set
        """
        started = time.perf_counter()
        logger.info(f"Starting record validation: {len(records)} records")

        scan = self.extractor.scan(records, max_duplicates=self.config.max_duplicates)
        logger.debug(
            f"Internal IDs extracted: {len(scan.id_map)} unique, "
            f"{sum(len(ids) for ids in scan.id_map.values())} records carry one"
        )

        groups = self.detector.find_duplicates(scan.id_map)
        duration_ms = round((time.perf_counter() - started) * 1000)

        if not groups:
            logger.info(
                f"Validation successful - no duplicates found "
                f"({len(records)} records, {duration_ms} ms)"
            )
            self._log_run(
                "validation_passed",
                total_records=len(records),
                duplicates_found=0,
                duration_ms=duration_ms,
            )
            return ValidationResult(valid=True, total_records=len(records))

        enriched = self.suggestions.enrich(groups, scan.id_map.keys())
        messages = self.formatter.format(enriched)
        affected = self.detector.count_affected_records(groups)

        logger.error(
            f"Validation failed - {len(groups)} duplicated IDs across "
            f"{affected} records ({duration_ms} ms)"
        )
        for line in self.formatter.format_compact(enriched):
            logger.error(line)
        self._log_run(
            "validation_failed",
            total_records=len(records),
            duplicates_found=len(groups),
            affected_records=affected,
            truncated=scan.truncated,
            duration_ms=duration_ms,
            duplicates=[g.to_dict() for g in enriched],
        )

        raise ValidationError(messages, enriched, truncated=scan.truncated)

    def validate_non_blocking(self, records: List[Record]) -> ValidationReport:
        """Same check as validate(), but returns a report instead of raising."""
        try:
            self.validate(records)
        except ValidationError as e:
            return ValidationReport(
                timestamp=datetime.utcnow(),
                total_records=len(records),
                duplicates_found=len(e.duplicates),
                duplicates=e.duplicates,
                truncated=e.truncated,
            )

        return ValidationReport(
            timestamp=datetime.utcnow(),
            total_records=len(records),
            duplicates_found=0,
        )

    def generate_report(
        self,
        records: List[Record],
        report: Optional[ValidationReport] = None
    ) -> str:
        """Formatted text for either outcome."""
        if report is None:
            report = self.validate_non_blocking(records)
        lines = [self.formatter.format_log_header(report.duplicates_found, report.total_records)]

        if report.duplicates_found > 0:
            lines.extend(self.formatter.format(report.duplicates))
        else:
            lines.append("No duplicates found\n")

        return "\n".join(lines)

    def _log_run(self, event: str, **fields) -> None:
        if self.run_log is not None:
            self.run_log.write(event, **fields)


class ValidationReportGenerator:
    """Writes validation reports to disk."""

    def save(self, report: ValidationReport, path: str) -> str:
        output = Path(path)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, default=str)
        logger.info(f"Saved validation report to {output}")
        return str(output)
