"""Command-line interface for workflow transfers and ID checks."""

import argparse
import json
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

from .clients.n8n_client import N8NClient
from .config import AppConfig, load_config, load_validation_config
from .errors import (
    ConfigError,
    EndpointConnectionError,
    EndpointError,
    ExitCode,
    PluginNotFoundError,
    ValidationError,
)
from .logging_utils import configure_logging, mask_url
from .models.record import Record
from .models.transfer import TransferOptions, TransferResult, TransferStatus
from .orchestrator import TransferManager
from .plugins.base import PluginType
from .plugins.registry import create_default_registry
from .retry import RetryPolicy
from .services.run_log import RunLog
from .services.validation_service import ValidationReportGenerator, ValidationService

logger = logging.getLogger(__name__)


def _split(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def build_manager(config: AppConfig) -> TransferManager:
    """Wire endpoints, plugins and logs from configuration."""
    source = N8NClient(
        "source",
        config.source.url,
        config.source.api_key.get_secret_value(),
        timeout=config.source.timeout,
    )
    target = N8NClient(
        "target",
        config.target.url,
        config.target.api_key.get_secret_value(),
        timeout=config.target.timeout,
    )
    registry = create_default_registry(config.reports_dir, config.plugins_dir)
    return TransferManager(
        source,
        target,
        registry,
        retry_policy=RetryPolicy(),
        run_log=RunLog(config.validation.log_path),
        max_failures=config.max_failures,
    )


def build_options(config: AppConfig, args) -> TransferOptions:
    """Config-file options with command-line overrides applied."""
    data: Dict[str, Any] = config.transfer.model_dump()
    filters = data.setdefault("filters", {})

    if getattr(args, "dry_run", False):
        data["dry_run"] = True
    if getattr(args, "skip_credentials", False):
        data["skip_credentials"] = True
    if getattr(args, "parallelism", None) is not None:
        data["parallelism"] = args.parallelism
    if getattr(args, "deduplicator", None):
        data["deduplicator"] = args.deduplicator

    for option in ("validators", "reporters"):
        values = _split(getattr(args, option, None))
        if values is not None:
            data[option] = values

    for option in ("workflow_ids", "workflow_names", "tags", "exclude_tags"):
        values = _split(getattr(args, option, None))
        if values is not None:
            filters[option] = values

    return TransferOptions.from_dict(data)


def print_transfer_summary(result: TransferResult) -> None:
    title = {
        TransferStatus.COMPLETED: "TRANSFER COMPLETE",
        TransferStatus.CANCELLED: "TRANSFER CANCELLED",
    }.get(result.status, "TRANSFER FAILED")
    if result.dry_run:
        title += " (DRY RUN)"

    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)
    print(f"Status: {result.status.value}")
    print(f"Source: {result.source_url}")
    print(f"Target: {result.target_url}")
    print(f"Records: {result.total}")
    print(f"Transferred: {result.transferred}")
    print(f"Skipped: {result.skipped}")
    print(f"Failed: {result.failed}")
    if result.aborted_reason:
        print(f"Reason: {result.aborted_reason}")
    if result.duration_seconds is not None:
        print(f"Duration: {result.duration_seconds:.2f} seconds")
    for report in result.reports:
        print(f"Report ({report.format}): {report.path}")


def run_transfer(args) -> int:
    """Run a transfer from config file and flags."""
    config = load_config(args.config)
    options = build_options(config, args)
    if args.max_failures is not None:
        config = config.model_copy(update={"max_failures": args.max_failures})
    manager = build_manager(config)

    logger.info(f"Transferring {mask_url(config.source.url)} -> {mask_url(config.target.url)}")

    def handle_signal(signum, frame):
        logger.warning(f"Received signal {signum}, cancelling transfer")
        manager.cancel()

    previous = {
        sig: signal.signal(sig, handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        result = manager.transfer(options)
    except Exception:
        if manager.result is not None:
            print_transfer_summary(manager.result)
        raise
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    print_transfer_summary(result)

    if result.status == TransferStatus.CANCELLED:
        return ExitCode.CANCELLED
    if result.status == TransferStatus.FAILED:
        return ExitCode.TRANSFER_FAILED
    return ExitCode.SUCCESS


def run_validate(args) -> int:
    """Run the validators over source records without writing."""
    config = load_config(args.config)
    options = build_options(config, args)
    manager = build_manager(config)

    summary = manager.validate_records(options)

    print("\n" + "=" * 60)
    print("VALIDATION SUMMARY")
    print("=" * 60)
    print(f"Validators: {', '.join(summary['validators'])}")
    print(f"Records: {summary['total']}")
    print(f"Valid: {summary['valid']}")
    print(f"Invalid: {summary['invalid']}")
    print(f"Errors: {summary['errors']}  Warnings: {summary['warnings']}")
    for entry in summary["issues"]:
        for message in entry["errors"]:
            print(f"  [error] {entry['name']} ({entry['record_id']}): {message}")
        if args.verbose:
            for message in entry["warnings"]:
                print(f"  [warning] {entry['name']} ({entry['record_id']}): {message}")

    return ExitCode.VALIDATION_ERROR if summary["invalid"] else ExitCode.SUCCESS


def _load_records(path: str) -> List[Record]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read records from {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("data", [data])
    return [Record.from_dict(item) for item in data]


def run_check_ids(args) -> int:
    """Check records for duplicated internal IDs."""
    if args.input:
        validation_config = load_validation_config(args.config)
        records = _load_records(args.input)
    else:
        config = load_config(args.config)
        validation_config = config.validation
        manager = build_manager(config)
        records = manager.source.list_records()

    service = ValidationService(validation_config, run_log=RunLog(validation_config.log_path))

    if args.non_blocking or args.report_out:
        report = service.validate_non_blocking(records)
        if args.report_out:
            ValidationReportGenerator().save(report, args.report_out)
        print(service.generate_report(records, report))
        if args.non_blocking:
            return ExitCode.SUCCESS
        return ExitCode.VALIDATION_ERROR if report.duplicates_found else ExitCode.SUCCESS

    try:
        service.validate(records)
    except ValidationError as e:
        print("\n".join(e.messages))
        return ExitCode.VALIDATION_ERROR

    print("\n".join(service.formatter.format_success(len(records))))
    return ExitCode.SUCCESS


def run_list_plugins(args) -> int:
    """List available plugins."""
    plugins_dir = getattr(args, "plugins_dir", None)
    registry = create_default_registry(plugins_dir=plugins_dir)

    print("\n=== Available Plugins ===")
    for plugin_type in PluginType:
        print(f"\n{plugin_type.value}:")
        for plugin in registry.list_by_type(plugin_type):
            state = "" if plugin.enabled else " (disabled)"
            print(f"  - {plugin.name} v{plugin.version}{state}: {plugin.description}")
    return ExitCode.SUCCESS


def _add_transfer_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--parallelism", type=int, help="Records processed concurrently (1-10)")
    parser.add_argument("--deduplicator", help="Deduplicator plugin name")
    parser.add_argument("--validators", help="Comma-separated validator plugin names")
    parser.add_argument("--workflow-ids", help="Only these source record IDs")
    parser.add_argument("--workflow-names", help="Only these exact record names")
    parser.add_argument("--tags", help="Only records carrying any of these tags")
    parser.add_argument("--exclude-tags", help="Skip records carrying any of these tags")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Transfer workflows between two n8n instances"
    )
    parser.add_argument("--config", help="Path to JSON config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Transfer
    transfer_parser = subparsers.add_parser("transfer", help="Transfer workflows from source to target")
    _add_transfer_arguments(transfer_parser)
    transfer_parser.add_argument("--dry-run", action="store_true", help="Decide everything, write nothing")
    transfer_parser.add_argument("--reporters", help="Comma-separated reporter plugin names")
    transfer_parser.add_argument("--skip-credentials", action="store_true", help="Skip records using credentials")
    transfer_parser.add_argument("--max-failures", type=int, help="Abort after this many failed records")

    # Validate
    validate_parser = subparsers.add_parser("validate", help="Validate source workflows without transferring")
    _add_transfer_arguments(validate_parser)

    # Internal ID check
    ids_parser = subparsers.add_parser("check-ids", help="Check for duplicated internal IDs")
    ids_parser.add_argument("--input", help="JSON file of workflows instead of fetching the source")
    ids_parser.add_argument("--non-blocking", action="store_true", help="Report duplicates without failing")
    ids_parser.add_argument("--report-out", help="Write a JSON validation report here")

    # Plugins
    plugins_parser = subparsers.add_parser("plugins", help="List available plugins")
    plugins_parser.add_argument("--plugins-dir", help="Directory with additional plugins")

    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    commands = {
        "transfer": run_transfer,
        "validate": run_validate,
        "check-ids": run_check_ids,
        "plugins": run_list_plugins,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return ExitCode.CONFIG_ERROR

    try:
        return int(handler(args))
    except (ConfigError, PluginNotFoundError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return ExitCode.CONFIG_ERROR
    except (EndpointConnectionError, EndpointError) as e:
        print(f"Connection error: {e}", file=sys.stderr)
        return ExitCode.CONNECTION_ERROR
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        print(f"Transfer failed: {e}", file=sys.stderr)
        return ExitCode.TRANSFER_FAILED


if __name__ == "__main__":
    sys.exit(main())
