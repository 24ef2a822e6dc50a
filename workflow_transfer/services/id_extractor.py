"""Internal-ID extraction from record names and tags."""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from ..models.record import Record
from ..models.validation import DEFAULT_ID_PATTERN

logger = logging.getLogger(__name__)


@dataclass
class IDScan:
    """Result of one pass over a record set."""
    id_map: Dict[str, List[str]] = field(default_factory=dict)
    scanned: int = 0
    truncated: bool = False


class IDExtractor:
    """
    Pulls a normalized internal ID out of a record.

    The display name is searched first, then the tags joined with spaces.
    The first match wins and is normalized to trimmed upper case.
    """

    def __init__(self, pattern: Union[str, "re.Pattern", None] = None):
        if pattern is None:
            pattern = DEFAULT_ID_PATTERN
        if isinstance(pattern, str):
            pattern = re.compile(pattern, re.IGNORECASE)
        self.pattern = pattern

    def extract_single_id(self, record: Record) -> Optional[str]:
        """Return the record's internal ID, or None if it carries none."""
        if record.name:
            match = self.pattern.search(record.name)
            if match:
                return match.group(0).strip().upper()

        if record.tags:
            match = self.pattern.search(" ".join(record.tags))
            if match:
                return match.group(0).strip().upper()

        return None

    def scan(
        self,
        records: Iterable[Record],
        max_duplicates: Optional[int] = None
    ) -> IDScan:
        """
        Build the internal ID -> record IDs map in one pass.

        If ``max_duplicates`` is given, scanning stops as soon as the number
        of records involved in duplicates exceeds it.
        """
        result = IDScan()
        affected = 0

        for record in records:
            result.scanned += 1
            internal_id = self.extract_single_id(record)
            if internal_id is None:
                continue

            ids = result.id_map.setdefault(internal_id, [])
            ids.append(record.id)
            if len(ids) == 2:
                affected += 2
            elif len(ids) > 2:
                affected += 1

            if max_duplicates is not None and affected > max_duplicates:
                logger.warning(
                    f"Duplicate threshold exceeded ({affected} > {max_duplicates}), "
                    f"stopping after {result.scanned} records"
                )
                result.truncated = True
                break

        return result

    def extract_internal_ids(self, records: Iterable[Record]) -> Dict[str, List[str]]:
        """Map every internal ID to the external IDs of the records carrying it."""
        return self.scan(records).id_map
