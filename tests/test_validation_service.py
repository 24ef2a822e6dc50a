"""Tests for ValidationService."""

import json

import pytest

from workflow_transfer.errors import ConfigError, ValidationError
from workflow_transfer.models.validation import ValidationConfig
from workflow_transfer.services.run_log import RunLog
from workflow_transfer.services.validation_service import (
    ValidationReportGenerator,
    ValidationService,
)
from tests.conftest import make_record


@pytest.fixture
def records_with_one_duplicate():
    records = [make_record(f"wf-{n}", f"Flow (ABC-DEF-{n:03d})") for n in range(1, 35)]
    records.append(make_record("wf-35", "Copy of flow (ABC-DEF-005)"))
    return records


def test_clean_records_pass():
    records = [make_record(str(n), f"Flow (ABC-DEF-{n:03d})") for n in range(1, 6)]
    result = ValidationService().validate(records)
    assert result.valid
    assert result.total_records == 5
    assert result.duplicates == []


def test_records_without_ids_pass():
    result = ValidationService().validate([make_record("1", "a"), make_record("2", "b")])
    assert result.valid


def test_duplicate_pair_raises(records_with_one_duplicate):
    with pytest.raises(ValidationError) as exc_info:
        ValidationService().validate(records_with_one_duplicate)

    error = exc_info.value
    assert len(error.duplicates) == 1
    group = error.duplicates[0]
    assert group.internal_id == "(ABC-DEF-005)"
    assert group.count == 2
    # 1-34 are taken, so the first free number is above the range
    assert group.suggestions == ["(ABC-DEF-035)"]
    text = "\n".join(error.messages)
    assert "wf-5" in text
    assert "wf-35" in text
    assert str(error) == "Validation failed: duplicate IDs detected"


def test_non_blocking_returns_report(records_with_one_duplicate):
    report = ValidationService().validate_non_blocking(records_with_one_duplicate)
    assert not report.valid
    assert report.duplicates_found == 1
    assert report.total_records == 35


def test_non_blocking_clean():
    report = ValidationService().validate_non_blocking([make_record("1", "(ABC-DEF-001)")])
    assert report.valid
    assert report.duplicates == []


def test_threshold_marks_truncated():
    records = [make_record(str(n), "(ABC-DEF-001)") for n in range(5)]
    config = ValidationConfig(max_duplicates=2)
    with pytest.raises(ValidationError) as exc_info:
        ValidationService(config).validate(records)
    assert exc_info.value.truncated


def test_generate_report(records_with_one_duplicate):
    service = ValidationService()
    text = service.generate_report(records_with_one_duplicate)
    assert "Total records: 35" in text
    assert "Internal ID: (ABC-DEF-005)" in text

    clean = service.generate_report([make_record("1", "x")])
    assert "No duplicates found" in clean


def test_run_log_entries(tmp_path, records_with_one_duplicate):
    run_log = RunLog(str(tmp_path / "logs" / "validation.log"))
    service = ValidationService(run_log=run_log)

    service.validate([make_record("1", "x")])
    with pytest.raises(ValidationError):
        service.validate(records_with_one_duplicate)

    entries = run_log.read()
    assert [e["event"] for e in entries] == ["validation_passed", "validation_failed"]
    assert entries[1]["duplicates_found"] == 1
    assert entries[1]["affected_records"] == 2
    assert entries[1]["duplicates"][0]["internal_id"] == "(ABC-DEF-005)"


def test_invalid_pattern_is_config_error():
    with pytest.raises(ConfigError):
        ValidationConfig.from_dict({"idPattern": "(unclosed"})


def test_camel_case_config():
    config = ValidationConfig.from_dict({"idPattern": r"\[[A-Z]+\]", "maxDuplicates": 5})
    assert config.max_duplicates == 5
    assert ValidationService(config).validate([make_record("1", "[ops]")]).valid


def test_report_generator_writes_json(tmp_path, records_with_one_duplicate):
    report = ValidationService().validate_non_blocking(records_with_one_duplicate)
    path = ValidationReportGenerator().save(report, str(tmp_path / "out" / "report.json"))
    with open(path) as f:
        data = json.load(f)
    assert data["duplicates_found"] == 1
    assert data["duplicates"][0]["suggestions"] == ["(ABC-DEF-035)"]
