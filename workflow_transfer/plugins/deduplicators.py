"""Deduplicator plugins: exact name/tag match and fuzzy name match."""

import json
import logging
from typing import List, Optional, Tuple

from ..errors import ConfigError
from ..models.record import Record
from .base import Deduplicator

logger = logging.getLogger(__name__)


def levenshtein_distance(s1: str, s2: str) -> int:
    """Minimum number of single-character edits turning s1 into s2."""
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)
    if s1 == s2:
        return 0

    rows, cols = len(s1) + 1, len(s2) + 1
    matrix = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,        # deletion
                matrix[i][j - 1] + 1,        # insertion
                matrix[i - 1][j - 1] + cost,  # substitution
            )

    return matrix[-1][-1]


def similarity(s1: str, s2: str) -> float:
    """1 - distance / longest length; two empty strings are identical."""
    longest = max(len(s1), len(s2))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(s1, s2) / longest


class StandardDeduplicator(Deduplicator):
    """
    Exact match on display name and tag set.

    Tag lists are compared by length before being compared as sets, so
    ``["a", "a"]`` and ``["a"]`` are different even though their sets agree.
    """

    name = "standard"
    description = "Duplicate when name and tags are exactly equal"

    @staticmethod
    def tags_equal(tags1: List[str], tags2: List[str]) -> bool:
        if len(tags1) != len(tags2):
            return False
        return set(tags1) == set(tags2)

    def is_duplicate(self, candidate: Record, existing: List[Record]) -> bool:
        self._last_reason = "No duplicate found"

        for record in existing:
            if record.name == candidate.name and self.tags_equal(record.tags, candidate.tags):
                self._last_reason = (
                    f"Duplicate found: name '{candidate.name}' and tags "
                    f"{json.dumps(list(candidate.tags))} already exist"
                )
                return True

        return False

    def reason(self) -> str:
        return self._last_reason or "No check performed"


class FuzzyDeduplicator(Deduplicator):
    """Name similarity by Levenshtein distance against every existing record."""

    name = "fuzzy"
    description = "Duplicate when name similarity reaches the threshold"
    default_options = {"threshold": 0.85, "case_sensitive": False}

    def __init__(self, options=None):
        super().__init__(options)
        self.last_match: Optional[Tuple[Record, float]] = None

    @property
    def threshold(self) -> float:
        threshold = float(self.get_option("threshold", 0.85))
        if not 0.0 <= threshold <= 1.0:
            raise ConfigError(f"Fuzzy threshold must be between 0 and 1, got {threshold}")
        return threshold

    def validate_options(self) -> None:
        self.threshold

    def _normalize(self, value: str) -> str:
        if self.get_option("case_sensitive", False):
            return value
        return value.strip().lower()

    def best_match(self, candidate: Record, existing: List[Record]) -> Optional[Tuple[Record, float]]:
        """Most similar existing record; the earliest wins a tie."""
        best = None
        name = self._normalize(candidate.name)

        for record in existing:
            if not record.name:
                continue
            score = similarity(name, self._normalize(record.name))
            if best is None or score > best[1]:
                best = (record, score)

        return best

    def is_duplicate(self, candidate: Record, existing: List[Record]) -> bool:
        threshold = self.threshold
        self.last_match = None
        self._last_reason = "No duplicate found"

        best = self.best_match(candidate, existing)
        if best is not None and best[1] >= threshold:
            self.last_match = best
            self._last_reason = (
                f"Similar record found: '{best[0].name}' (similarity: {best[1] * 100:.1f}%)"
            )
            logger.debug(f"'{candidate.name}' matches {self._last_reason}")
            return True

        return False
