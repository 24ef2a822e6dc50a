"""Tests for deduplicator plugins."""

import pytest

from workflow_transfer.errors import ConfigError
from workflow_transfer.plugins.deduplicators import (
    FuzzyDeduplicator,
    StandardDeduplicator,
    levenshtein_distance,
    similarity,
)
from tests.conftest import make_record


def test_levenshtein():
    assert levenshtein_distance("", "") == 0
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("abc", "") == 3
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("flow", "flow") == 0


def test_similarity():
    assert similarity("", "") == 1.0
    assert similarity("workflow", "workflow") == 1.0
    assert similarity("abcd", "abce") == pytest.approx(0.75)


class TestStandardDeduplicator:
    def test_reason_before_first_check(self):
        assert StandardDeduplicator().reason() == "No check performed"

    def test_same_name_and_tags(self):
        dedup = StandardDeduplicator()
        existing = [make_record("t1", "Sync", tags=["a", "b"])]
        assert dedup.is_duplicate(make_record("s1", "Sync", tags=["b", "a"]), existing)
        assert dedup.reason() == 'Duplicate found: name \'Sync\' and tags ["b", "a"] already exist'

    def test_different_tags(self):
        dedup = StandardDeduplicator()
        existing = [make_record("t1", "Sync", tags=["a"])]
        assert not dedup.is_duplicate(make_record("s1", "Sync", tags=["b"]), existing)
        assert dedup.reason() == "No duplicate found"

    def test_tag_multiplicity_matters(self):
        dedup = StandardDeduplicator()
        existing = [make_record("t1", "Sync", tags=["a"])]
        assert not dedup.is_duplicate(make_record("s1", "Sync", tags=["a", "a"]), existing)

    def test_name_is_case_sensitive(self):
        existing = [make_record("t1", "sync")]
        assert not StandardDeduplicator().is_duplicate(make_record("s1", "Sync"), existing)


class TestFuzzyDeduplicator:
    def test_similar_name(self):
        dedup = FuzzyDeduplicator()
        existing = [make_record("t1", "Customer Sync Workflow")]
        assert dedup.is_duplicate(make_record("s1", "customer sync workflow!"), existing)
        assert dedup.reason().startswith("Similar record found: 'Customer Sync Workflow'")
        assert dedup.last_match[0].id == "t1"

    def test_dissimilar_name(self):
        dedup = FuzzyDeduplicator()
        assert not dedup.is_duplicate(make_record("s1", "Invoices"), [make_record("t1", "Leads")])
        assert dedup.last_match is None

    def test_threshold_option(self):
        existing = [make_record("t1", "abcd")]
        assert not FuzzyDeduplicator().is_duplicate(make_record("s1", "abce"), existing)
        assert FuzzyDeduplicator({"threshold": 0.75}).is_duplicate(make_record("s1", "abce"), existing)

    def test_case_sensitive_option(self):
        existing = [make_record("t1", "ABCD")]
        dedup = FuzzyDeduplicator({"case_sensitive": True})
        assert not dedup.is_duplicate(make_record("s1", "abcd"), existing)

    def test_earliest_wins_tie(self):
        existing = [make_record("t1", "flow"), make_record("t2", "flow")]
        dedup = FuzzyDeduplicator()
        dedup.is_duplicate(make_record("s1", "flow"), existing)
        assert dedup.last_match[0].id == "t1"

    def test_invalid_threshold(self):
        dedup = FuzzyDeduplicator({"threshold": 1.5})
        with pytest.raises(ConfigError):
            dedup.is_duplicate(make_record("s1", "x"), [])

    def test_validate_options(self):
        FuzzyDeduplicator({"threshold": 0.5}).validate_options()
        with pytest.raises(ConfigError, match="between 0 and 1"):
            FuzzyDeduplicator({"threshold": -0.1}).validate_options()
