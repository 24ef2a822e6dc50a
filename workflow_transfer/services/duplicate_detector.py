"""Duplicate detection over internal IDs."""

from typing import Dict, List

from ..models.validation import DuplicateGroup


class DuplicateDetector:
    """Groups records by internal ID and keeps the groups with more than one member."""

    def find_duplicates(self, id_map: Dict[str, List[str]]) -> List[DuplicateGroup]:
        """
        Return duplicate groups sorted by count, largest first.

        Groups of equal size keep the order in which their ID was first seen.
        """
        groups = [
            DuplicateGroup(internal_id=internal_id, record_ids=list(record_ids))
            for internal_id, record_ids in id_map.items()
            if len(record_ids) > 1
        ]
        # sorted() is stable, so insertion order breaks ties
        return sorted(groups, key=lambda g: g.count, reverse=True)

    def count_affected_records(self, groups: List[DuplicateGroup]) -> int:
        """Total number of records involved in any duplicate group."""
        return sum(g.count for g in groups)
