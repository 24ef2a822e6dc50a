"""Replacement-ID suggestions for duplicated internal IDs."""

import logging
import re
from typing import Iterable, List, Optional, Set

from ..models.validation import DuplicateGroup, EnrichedDuplicateGroup

logger = logging.getLogger(__name__)

ID_PARTS_PATTERN = re.compile(r"\(([A-Z]+-[A-Z]+)-(\d{3})\)")
MAX_SUFFIX = 999
MAX_SUGGESTIONS_PER_GROUP = 3


class SuggestionEngine:
    """
    Proposes unused sequential IDs.

    Gaps below the duplicated number are filled first, then numbers above
    it are tried up to 999. When the three-digit space is used up there is
    nothing to suggest.
    """

    @staticmethod
    def format_id(prefix: str, number: int) -> str:
        return f"({prefix}-{number:03d})"

    def suggest_next_id(self, internal_id: str, used_ids: Set[str]) -> Optional[str]:
        """Return the first free ID for the same prefix, or None."""
        match = ID_PARTS_PATTERN.search(internal_id.strip().upper())
        if not match:
            return None

        prefix = match.group(1)
        current = int(match.group(2))

        for number in range(1, current):
            candidate = self.format_id(prefix, number)
            if candidate not in used_ids:
                return candidate

        for number in range(current + 1, MAX_SUFFIX + 1):
            candidate = self.format_id(prefix, number)
            if candidate not in used_ids:
                return candidate

        logger.warning(f"No free ID left for prefix {prefix}")
        return None

    def enrich(
        self,
        groups: List[DuplicateGroup],
        used_ids: Iterable[str]
    ) -> List[EnrichedDuplicateGroup]:
        """
        Attach suggestions to every group.

        Each group of size k receives up to min(k - 1, 3) suggestions. The
        in-use set is shared across the whole batch, so no suggestion is
        handed out twice.
        """
        in_use = {i.strip().upper() for i in used_ids}
        enriched = []

        for group in groups:
            suggestions = []
            wanted = min(group.count - 1, MAX_SUGGESTIONS_PER_GROUP)
            for _ in range(wanted):
                suggestion = self.suggest_next_id(group.internal_id, in_use)
                if suggestion is None:
                    break
                suggestions.append(suggestion)
                in_use.add(suggestion)

            enriched.append(EnrichedDuplicateGroup(
                internal_id=group.internal_id,
                record_ids=list(group.record_ids),
                suggestions=suggestions,
            ))

        return enriched
