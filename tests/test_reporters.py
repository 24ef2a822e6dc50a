"""Tests for reporter plugins."""

import csv
import inspect
import json
from datetime import datetime, timedelta

import pytest

from workflow_transfer.models.record import RecordStatus, TransferItem
from workflow_transfer.models.transfer import TransferResult, TransferStatus
from workflow_transfer.plugins.reporters import CSVReporter, FileReporter, JSONReporter, MarkdownReporter


@pytest.fixture
def result():
    started = datetime(2024, 5, 1, 12, 0, 0)
    return TransferResult(
        status=TransferStatus.COMPLETED,
        total=3,
        transferred=1,
        skipped=1,
        failed=1,
        started_at=started,
        completed_at=started + timedelta(seconds=2),
        source_url="https://staging.example.com",
        target_url="https://prod.example.com",
        items=[
            TransferItem("1", "Sync", RecordStatus.TRANSFERRED, target_id="t-1", tags=["a", "b"], node_count=2),
            TransferItem("2", "Leads", RecordStatus.SKIPPED, reason="Duplicate found"),
            TransferItem("3", "Pipe | Name", RecordStatus.FAILED, reason="HTTP 500"),
        ],
    )


def test_json_report(tmp_path, result):
    report = JSONReporter({"output_dir": str(tmp_path)}).generate(result)
    assert report.format == "json"
    with open(report.path) as f:
        data = json.load(f)
    assert data["statistics"]["total"] == 3
    assert data["statistics"]["success_rate"] == pytest.approx(33.3)
    assert data["metadata"]["duration_seconds"] == 2.0
    assert [w["record_id"] for w in data["workflows"]] == ["1", "2", "3"]
    assert data["errors"] == [{"record_id": "3", "name": "Pipe | Name", "reason": "HTTP 500"}]


def test_markdown_report(result):
    text = MarkdownReporter().render(result)
    assert text.startswith("# Workflow Transfer Report")
    assert "| Transferred | 1 |" in text
    assert "| 1 | Sync | 1 | t-1 |" in text
    assert "Pipe \\| Name" in text
    assert "Dry run" not in text


def test_markdown_dry_run_and_empty_sections():
    text = MarkdownReporter().render(TransferResult(dry_run=True))
    assert "**Dry run**" in text
    assert text.count("_None_") == 3


def test_csv_report(tmp_path, result):
    report = CSVReporter({"output_dir": str(tmp_path)}).generate(result)
    assert report.path.endswith(".csv")
    with open(report.path, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == CSVReporter.HEADERS
    assert rows[1] == ["Sync", "transferred", "a, b", "2", "1", "t-1", ""]
    assert len(rows) == 4


def test_output_dir_created(tmp_path, result):
    output_dir = tmp_path / "nested" / "reports"
    report = MarkdownReporter({"output_dir": str(output_dir)}).generate(result)
    assert output_dir.is_dir()
    assert report.path.startswith(str(output_dir))


def test_file_reporter_requires_write():
    assert inspect.isabstract(FileReporter)
    with pytest.raises(TypeError):
        FileReporter()
