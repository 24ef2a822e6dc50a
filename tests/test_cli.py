"""Tests for the command-line entry point."""

import json

import pytest

from workflow_transfer import cli
from workflow_transfer.errors import AuthenticationError, ExitCode
from tests.conftest import FakeEndpoint, make_record


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for variable in ("SOURCE_N8N_URL", "SOURCE_N8N_API_KEY", "TARGET_N8N_URL", "TARGET_N8N_API_KEY"):
        monkeypatch.delenv(variable, raising=False)


def write_records(tmp_path, names):
    path = tmp_path / "workflows.json"
    path.write_text(json.dumps({"data": [{"id": f"wf-{i}", "name": n} for i, n in enumerate(names)]}))
    return str(path)


def write_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "source": {"url": "https://staging.example.com", "api_key": "a"},
        "target": {"url": "https://prod.example.com", "api_key": "b"},
        "reports_dir": str(tmp_path / "reports"),
    }))
    return str(path)


def test_check_ids_duplicates(tmp_path, capsys):
    path = write_records(tmp_path, ["One (ABC-DEF-001)", "Two (ABC-DEF-001)"])
    assert cli.main(["check-ids", "--input", path]) == ExitCode.VALIDATION_ERROR
    out = capsys.readouterr().out
    assert "Internal ID: (ABC-DEF-001)" in out
    assert "change to (ABC-DEF-002)" in out


def test_check_ids_clean(tmp_path, capsys):
    path = write_records(tmp_path, ["One (ABC-DEF-001)", "Two (ABC-DEF-002)"])
    assert cli.main(["check-ids", "--input", path]) == ExitCode.SUCCESS
    assert "Validation passed" in capsys.readouterr().out


def test_check_ids_non_blocking_with_report(tmp_path):
    path = write_records(tmp_path, ["One (ABC-DEF-001)", "Two (ABC-DEF-001)"])
    report_path = tmp_path / "out" / "report.json"
    code = cli.main(["check-ids", "--input", path, "--non-blocking", "--report-out", str(report_path)])
    assert code == ExitCode.SUCCESS
    assert json.loads(report_path.read_text())["duplicates_found"] == 1


def test_missing_config_is_config_error(capsys):
    assert cli.main(["transfer"]) == ExitCode.CONFIG_ERROR
    assert "Configuration error" in capsys.readouterr().err


def test_no_command():
    assert cli.main([]) == ExitCode.CONFIG_ERROR


def test_plugins(capsys):
    assert cli.main(["plugins"]) == ExitCode.SUCCESS
    out = capsys.readouterr().out
    assert "standard" in out
    assert "markdown" in out


def test_build_options_overrides(tmp_path):
    config = cli.load_config(write_config(tmp_path))
    args = cli_args(dry_run=True, parallelism=7, tags="crm, ops", validators="schema")
    options = cli.build_options(config, args)
    assert options.dry_run
    assert options.parallelism == 7
    assert options.filters.tags == ["crm", "ops"]
    assert options.validators == ["schema"]


def test_transfer_dry_run(tmp_path, monkeypatch, capsys):
    source = FakeEndpoint("source", [make_record("1", "Flow")])
    target = FakeEndpoint("target")
    original = cli.build_manager

    def fake_build_manager(config):
        manager = original(config)
        manager.source, manager.target = source, target
        manager.retry_policy._sleep = lambda seconds: None
        return manager

    monkeypatch.setattr(cli, "build_manager", fake_build_manager)
    code = cli.main(["--config", write_config(tmp_path), "transfer", "--dry-run"])

    assert code == ExitCode.SUCCESS
    assert target.create_attempts == 0
    out = capsys.readouterr().out
    assert "TRANSFER COMPLETE (DRY RUN)" in out
    assert "Transferred: 1" in out


def test_transfer_connection_error(tmp_path, monkeypatch):
    original = cli.build_manager

    def fake_build_manager(config):
        manager = original(config)
        manager.source = FakeEndpoint("source", connectivity_error=AuthenticationError("denied"))
        return manager

    monkeypatch.setattr(cli, "build_manager", fake_build_manager)
    code = cli.main(["--config", write_config(tmp_path), "transfer"])
    assert code == ExitCode.CONNECTION_ERROR


def test_transfer_unexpected_error_prints_summary(tmp_path, monkeypatch, capsys):
    original = cli.build_manager

    def fake_build_manager(config):
        manager = original(config)
        manager.source = FakeEndpoint("source", list_error=ValueError("bad payload"))
        manager.target = FakeEndpoint("target")
        return manager

    monkeypatch.setattr(cli, "build_manager", fake_build_manager)
    code = cli.main(["--config", write_config(tmp_path), "transfer"])

    assert code == ExitCode.TRANSFER_FAILED
    captured = capsys.readouterr()
    assert "TRANSFER FAILED" in captured.out
    assert "Transfer failed: bad payload" in captured.err


def cli_args(**kwargs):
    defaults = {
        "dry_run": False, "skip_credentials": False, "parallelism": None, "deduplicator": None,
        "validators": None, "reporters": None, "workflow_ids": None, "workflow_names": None,
        "tags": None, "exclude_tags": None,
    }
    defaults.update(kwargs)
    return type("Args", (), defaults)()


def test_validate_reports_invalid_records(tmp_path, monkeypatch, capsys):
    original = cli.build_manager

    def fake_build_manager(config):
        manager = original(config)
        manager.source = FakeEndpoint("source", [make_record("1", "Good"), make_record("2", "Empty", nodes=[])])
        return manager

    monkeypatch.setattr(cli, "build_manager", fake_build_manager)
    code = cli.main(["--config", write_config(tmp_path), "validate"])

    assert code == ExitCode.VALIDATION_ERROR
    out = capsys.readouterr().out
    assert "Invalid: 1" in out
    assert "[error] Empty (2)" in out
