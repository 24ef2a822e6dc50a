"""Tests for record and transfer models."""

import pytest

from workflow_transfer.errors import ConfigError
from workflow_transfer.models.record import Record
from workflow_transfer.models.transfer import TransferFilters, TransferOptions, TransferProgress
from tests.conftest import make_record


def test_record_from_payload():
    record = Record.from_dict({
        "id": 42,
        "name": "Flow",
        "active": True,
        "tags": [{"id": "1", "name": "crm"}, "ops"],
        "nodes": [{"id": "n1", "name": "Start", "credentials": {"api": {"id": "c"}}}],
        "connections": {},
        "createdAt": "2024-03-01T10:00:00.000Z",
        "versionId": "ignored",
    })
    assert record.id == "42"
    assert record.tags == ["crm", "ops"]
    assert record.created_at.year == 2024
    assert "versionId" not in record.body
    assert record.has_credentials()
    assert record.to_payload()["settings"] == {}
    assert record.to_dict()["nodes"] == 1


def test_filters_keep_untagged_records_unless_tags_required():
    untagged = make_record("1", "Flow")
    assert TransferFilters(exclude_tags=["old"]).matches(untagged)
    assert not TransferFilters(tags=["crm"]).matches(untagged)


def test_filters_by_id_and_name():
    records = [make_record("1", "A"), make_record("2", "B"), make_record("3", "C")]
    assert [r.id for r in TransferFilters(workflow_ids=["1", "3"]).apply(records)] == ["1", "3"]
    assert [r.id for r in TransferFilters(workflow_names=["B"]).apply(records)] == ["2"]


def test_options_defaults():
    options = TransferOptions.from_dict(None)
    assert options.deduplicator == "standard"
    assert options.validators == ["integrity"]
    assert options.reporters == ["markdown"]
    assert not options.dry_run


@pytest.mark.parametrize("data", [
    {"deduplicator": "  "},
    {"unknown": 1},
    {"filters": {"tags": "crm"}},
])
def test_invalid_options(data):
    with pytest.raises(ConfigError):
        TransferOptions.from_dict(data)


def test_progress_percentage():
    assert TransferProgress().percentage == 0.0
    assert TransferProgress(processed=1, total=3).percentage == 33.3
