"""Human-readable rendering of duplicate findings."""

from datetime import datetime
from typing import Callable, List, Optional

from ..models.validation import EnrichedDuplicateGroup

RULE = "=" * 60


class MessageFormatter:
    """Pure formatting of duplicate groups; no side effects."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.utcnow

    def format(self, duplicates: List[EnrichedDuplicateGroup]) -> List[str]:
        """Full message block: header, one entry per group, footer."""
        messages = [
            "",
            f"Found {len(duplicates)} duplicated internal IDs:",
            "",
        ]
        for group in duplicates:
            messages.append(self.format_single(group))
        messages.append("Fix the duplicated IDs at the source and run again.")
        messages.append("")
        return messages

    def format_single(self, group: EnrichedDuplicateGroup) -> str:
        lines = [
            f"Internal ID: {group.internal_id}",
            f"   Found in {group.count} records:",
        ]
        for index, record_id in enumerate(group.record_ids):
            lines.append(f"   {index + 1}. Record ID: {record_id}")
            suggestion = group.suggestion_for(index)
            if suggestion:
                lines.append(f"      -> Suggestion: change to {suggestion}")
        return "\n".join(lines) + "\n"

    def format_compact(self, duplicates: List[EnrichedDuplicateGroup]) -> List[str]:
        """One line per group, suitable for logs."""
        return [
            f"Found ID {g.internal_id} in {g.count} records. "
            f"Suggestion: {g.suggestions[0] if g.suggestions else 'N/A'}"
            for g in duplicates
        ]

    def format_success(self, total_records: int) -> List[str]:
        return [
            "",
            "Validation passed",
            f"Total records: {total_records}",
            "No duplicated internal IDs found",
            "",
        ]

    def format_log_header(self, duplicates_count: int, total_records: int) -> str:
        return "\n".join([
            RULE,
            f"Record validation - {self._clock().isoformat()}",
            RULE,
            f"Total records: {total_records}",
            f"Duplicates found: {duplicates_count}",
            RULE,
            "",
        ])
