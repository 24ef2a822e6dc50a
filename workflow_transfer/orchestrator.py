"""Transfer orchestrator - coordinates a complete workflow transfer."""

import dataclasses
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from .clients.base import BaseEndpoint
from .errors import (
    AuthenticationError,
    EndpointConnectionError,
    EndpointError,
    PerItemError,
    RetryExhaustedError,
    TransferError,
)
from .logging_utils import mask_url
from .models.record import Record, RecordStatus, TransferItem, ValidationIssue
from .models.transfer import (
    ReportFile,
    TransferFilters,
    TransferOptions,
    TransferProgress,
    TransferResult,
    TransferStatus,
)
from .plugins.base import BasePlugin, Deduplicator, PluginType, Reporter, Validator
from .plugins.registry import PluginRegistry
from .plugins.validators import summarize
from .retry import RetryPolicy
from .services.run_log import RunLog

logger = logging.getLogger(__name__)


@dataclass
class ResolvedPlugins:
    deduplicator: Deduplicator
    validators: List[Validator]
    reporters: List[Reporter]


class ClaimSet:
    """
    Records a new record is deduplicated against.

    Starts with the target's records and grows with every record written
    during the run. A record is only checked once every earlier record that
    could be its duplicate has settled, so outcomes follow source order and
    not thread timing.
    """

    def __init__(self, existing: List[Record]):
        self.written: List[Record] = list(existing)
        self._pending: Dict[int, Record] = {}
        self._condition = threading.Condition()

    def add_pending(self, index: int, record: Record) -> None:
        with self._condition:
            self._pending[index] = record

    def check(self, index: int, record: Record, deduplicator: Deduplicator) -> Tuple[bool, str]:
        """Wait for earlier look-alikes to settle, then deduplicate against written records."""
        with self._condition:
            while any(
                earlier < index and deduplicator.is_duplicate(record, [other])
                for earlier, other in list(self._pending.items())
            ):
                self._condition.wait()
            duplicate = deduplicator.is_duplicate(record, self.written)
            return duplicate, deduplicator.reason()

    def settle(self, index: int, written: bool) -> None:
        with self._condition:
            record = self._pending.pop(index, None)
            if written and record is not None:
                self.written.append(record)
            self._condition.notify_all()


class TransferManager:
    """
    Orchestrates a transfer from a source endpoint to a target endpoint.

    Handles:
    - Option validation
    - Connectivity checks
    - Plugin resolution
    - Fetching and filtering records
    - Deduplication, validation and writing under bounded concurrency
    - Aggregation and reporting

    Lifecycle: idle -> running -> completed | failed | cancelled.
    """

    def __init__(
        self,
        source: BaseEndpoint,
        target: BaseEndpoint,
        registry: PluginRegistry,
        retry_policy: Optional[RetryPolicy] = None,
        run_log: Optional[RunLog] = None,
        max_failures: Optional[int] = None
    ):
        """
        Initialize the manager.

        Args:
            source: Endpoint records are read from
            target: Endpoint records are written to
            registry: Registry the plugins are resolved from
            retry_policy: Policy for connectivity checks and writes
            run_log: Structured log receiving one entry per run
            max_failures: Abort once more records than this have failed
        """
        self.source = source
        self.target = target
        self.registry = registry
        self.retry_policy = retry_policy or RetryPolicy()
        self.run_log = run_log
        self.max_failures = max_failures

        # Runtime state, guarded by _lock
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._cancelled = False
        self._aborted_reason: Optional[str] = None
        self.progress = TransferProgress()
        self.result: Optional[TransferResult] = None

    def transfer(
        self,
        options: Union[TransferOptions, Dict[str, Any], None] = None
    ) -> TransferResult:
        """
        Run the complete transfer.

        Returns:
            TransferResult with counts, per-record outcomes and report files

        Raises:
            ConfigError: options are malformed
            EndpointConnectionError: an endpoint is unreachable or rejected our key
            PluginNotFoundError: a requested plugin is not registered
        """
        with self._lock:
            if self.progress.status == TransferStatus.RUNNING:
                raise TransferError("A transfer is already running")
            self._stop.clear()
            self._cancelled = False
            self._aborted_reason = None
            self.progress = TransferProgress(status=TransferStatus.RUNNING)

        result = TransferResult(
            status=TransferStatus.RUNNING,
            started_at=datetime.utcnow(),
            source_url=mask_url(self.source.url),
            target_url=mask_url(self.target.url),
        )
        self.result = result
        plugins: Optional[ResolvedPlugins] = None

        try:
            logger.info("=== PHASE 1: OPTIONS ===")
            opts = self._validate_options(options)
            result.dry_run = opts.dry_run

            logger.info("=== PHASE 2: CONNECTIVITY ===")
            self._check_connectivity()

            logger.info("=== PHASE 3: PLUGINS ===")
            resolved = self._resolve_plugins(opts)

            logger.info("=== PHASE 4: FETCH ===")
            records, existing = self._fetch_records(opts.filters)
            result.total = len(records)
            with self._lock:
                self.progress.total = len(records)

            logger.info("=== PHASE 5: TRANSFER ===")
            plugins = resolved
            self._run_pipeline(records, existing, opts, plugins, result)

        except Exception as e:
            logger.error(f"Transfer failed: {e}")
            self._finish(result, TransferStatus.FAILED, plugins, error=str(e))
            raise

        if self._cancelled:
            status = TransferStatus.CANCELLED
        elif self._aborted_reason:
            status = TransferStatus.FAILED
        else:
            status = TransferStatus.COMPLETED

        self._finish(result, status, plugins)
        return result

    def cancel(self) -> bool:
        """
        Request cancellation of a running transfer.

        No new records are started; records already in flight finish.
        Returns False if nothing is running.
        """
        with self._lock:
            if self.progress.status != TransferStatus.RUNNING:
                return False
            self._cancelled = True
        self._stop.set()
        logger.warning("Cancellation requested, waiting for in-flight records")
        return True

    def get_progress(self) -> TransferProgress:
        """Snapshot of the progress counters."""
        with self._lock:
            return dataclasses.replace(self.progress)

    def validate_records(
        self,
        options: Union[TransferOptions, Dict[str, Any], None] = None
    ) -> Dict[str, Any]:
        """
        Run the configured validators over the source records without writing anything.

        Returns:
            Dictionary with totals, per-record issues and the validators used
        """
        opts = self._validate_options(options)
        validators = [
            self._resolve(name, PluginType.VALIDATOR) for name in opts.validators
        ]
        records = self._fetch(self.source, opts.filters)
        records = opts.filters.apply(records)

        summary: Dict[str, Any] = {
            "total": len(records),
            "valid": 0,
            "invalid": 0,
            "errors": 0,
            "warnings": 0,
            "issues": [],
            "validators": [v.name for v in validators],
        }

        for record in records:
            issues = self._run_validators(record, validators)
            errors, warnings = summarize(issues)
            summary["errors"] += len(errors)
            summary["warnings"] += len(warnings)
            if errors:
                summary["invalid"] += 1
            else:
                summary["valid"] += 1
            if issues:
                summary["issues"].append({
                    "record_id": record.id,
                    "name": record.name,
                    "errors": [i.message for i in errors],
                    "warnings": [i.message for i in warnings],
                })

        logger.info(
            f"Validated {summary['total']} records: {summary['valid']} valid, "
            f"{summary['invalid']} invalid"
        )
        return summary

    def _validate_options(
        self,
        options: Union[TransferOptions, Dict[str, Any], None]
    ) -> TransferOptions:
        if isinstance(options, TransferOptions):
            return options
        return TransferOptions.from_dict(options)

    def _check_connectivity(self) -> None:
        """Test source, then target. Either failing aborts the run."""
        for endpoint in (self.source, self.target):
            try:
                self.retry_policy.call(
                    endpoint.test_connectivity,
                    description=f"{endpoint.name} connectivity check",
                )
            except AuthenticationError as e:
                raise EndpointConnectionError(endpoint.name, f"authentication rejected: {e}") from e
            except (EndpointError, RetryExhaustedError) as e:
                raise EndpointConnectionError(endpoint.name, f"unreachable: {e}") from e

    def _resolve(self, name: str, plugin_type: PluginType) -> BasePlugin:
        plugin = self.registry.resolve(name, plugin_type)
        if not plugin.enabled:
            logger.warning(f"Plugin '{plugin.name}' is disabled, enabling it for this run")
            plugin.enable()
        plugin.validate_options()
        return plugin

    def _resolve_plugins(self, opts: TransferOptions) -> ResolvedPlugins:
        deduplicator = self._resolve(opts.deduplicator, PluginType.DEDUPLICATOR)
        validators = [self._resolve(n, PluginType.VALIDATOR) for n in opts.validators]
        reporters = [self._resolve(n, PluginType.REPORTER) for n in opts.reporters]
        logger.info(
            f"Using deduplicator '{deduplicator.name}', validators "
            f"{[v.name for v in validators]}, reporters {[r.name for r in reporters]}"
        )
        return ResolvedPlugins(deduplicator, validators, reporters)

    def _fetch(self, endpoint: BaseEndpoint, filters: Optional[TransferFilters] = None) -> List[Record]:
        try:
            return endpoint.list_records(filters)
        except EndpointError as e:
            raise EndpointConnectionError(endpoint.name, f"failed to fetch records: {e}") from e

    def _fetch_records(self, filters: TransferFilters) -> Tuple[List[Record], List[Record]]:
        source_records = self._fetch(self.source, filters)
        records = filters.apply(source_records)
        if len(records) != len(source_records):
            logger.info(f"Filters kept {len(records)} of {len(source_records)} source records")

        existing = self._fetch(self.target)
        logger.info(f"{len(records)} records to process, {len(existing)} already at target")
        return records, existing

    def _run_pipeline(
        self,
        records: List[Record],
        existing: List[Record],
        opts: TransferOptions,
        plugins: ResolvedPlugins,
        result: TransferResult
    ) -> None:
        """Process records on a bounded worker pool."""
        items = [TransferItem.for_record(r) for r in records]
        claims = ClaimSet(existing)
        slots = threading.BoundedSemaphore(opts.parallelism)
        futures = []

        with ThreadPoolExecutor(max_workers=opts.parallelism) as executor:
            for index, (record, item) in enumerate(zip(records, items)):
                slots.acquire()
                if self._stop.is_set():
                    slots.release()
                    break
                claims.add_pending(index, record)
                future = executor.submit(
                    self._process_record, index, record, item, opts, plugins, claims
                )
                future.add_done_callback(lambda _: slots.release())
                futures.append(future)

        result.items = [i for i in items if i.status != RecordStatus.PENDING]
        with self._lock:
            result.transferred = self.progress.transferred
            result.skipped = self.progress.skipped
            result.failed = self.progress.failed
        if self._aborted_reason:
            result.aborted_reason = self._aborted_reason

        for future in futures:
            error = future.exception()
            if isinstance(error, AuthenticationError):
                raise EndpointConnectionError(self.target.name, f"authentication rejected: {error}") from error

    def _process_record(
        self,
        index: int,
        record: Record,
        item: TransferItem,
        opts: TransferOptions,
        plugins: ResolvedPlugins,
        claims: ClaimSet
    ) -> None:
        """Deduplicate, validate and write one record."""
        written = False
        try:
            duplicate, reason = claims.check(index, record, plugins.deduplicator)
            if duplicate:
                self._record_outcome(item, RecordStatus.SKIPPED, reason)
                return

            item.issues = self._run_validators(record, plugins.validators)
            errors, _ = summarize(item.issues)
            if errors:
                raise PerItemError(
                    record.id, record.name,
                    "Validation failed: " + "; ".join(e.message for e in errors),
                )

            if opts.skip_credentials and record.has_credentials():
                self._record_outcome(item, RecordStatus.SKIPPED, "Contains credentials")
                return

            if opts.dry_run:
                written = True
                self._record_outcome(item, RecordStatus.TRANSFERRED, "Dry run: not written")
                return

            target_id = self._write(record)
            written = True
            self._record_outcome(item, RecordStatus.TRANSFERRED, target_id=target_id)

        except AuthenticationError as e:
            self._record_outcome(item, RecordStatus.FAILED, str(e))
            self._stop.set()
            logger.error(f"Authentication rejected by {self.target.name}, aborting transfer")
            raise
        except PerItemError as e:
            self._record_outcome(item, RecordStatus.FAILED, e.reason)
        except Exception as e:
            logger.error(f"Failed to transfer {record.name} ({record.id}): {e}")
            self._record_outcome(item, RecordStatus.FAILED, str(e))
        finally:
            claims.settle(index, written)

    def _write(self, record: Record) -> str:
        try:
            return self.retry_policy.call(
                lambda: self.target.create_or_update_record(record),
                description=f"Transfer of '{record.name}'",
            )
        except RetryExhaustedError as e:
            raise PerItemError(
                record.id, record.name, f"{e.last_error} (after {e.attempts} attempts)"
            ) from e

    def _run_validators(self, record: Record, validators: List[Validator]) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        for validator in validators:
            issues.extend(validator.validate(record))
        return issues

    def _record_outcome(
        self,
        item: TransferItem,
        status: RecordStatus,
        reason: Optional[str] = None,
        target_id: Optional[str] = None
    ) -> None:
        with self._lock:
            item.status = status
            item.reason = reason
            item.target_id = target_id
            self.progress.processed += 1
            if status == RecordStatus.TRANSFERRED:
                self.progress.transferred += 1
            elif status == RecordStatus.SKIPPED:
                self.progress.skipped += 1
            else:
                self.progress.failed += 1

            if (
                status == RecordStatus.FAILED
                and self.max_failures is not None
                and self.progress.failed > self.max_failures
                and self._aborted_reason is None
            ):
                self._aborted_reason = (
                    f"Failure threshold exceeded ({self.progress.failed} > {self.max_failures})"
                )
                self._stop.set()
                logger.error(f"{self._aborted_reason}, stopping transfer")

        level = logging.DEBUG if status == RecordStatus.TRANSFERRED else logging.INFO
        logger.log(level, f"{item.name} ({item.record_id}): {status.value}{f' - {reason}' if reason else ''}")

    def _generate_reports(self, result: TransferResult, reporters: List[Reporter]) -> List[ReportFile]:
        reports = []
        for reporter in reporters:
            try:
                reports.append(reporter.generate(result))
            except Exception as e:
                logger.error(f"Reporter '{reporter.name}' failed: {e}")
        return reports

    def _finish(
        self,
        result: TransferResult,
        status: TransferStatus,
        plugins: Optional[ResolvedPlugins],
        error: Optional[str] = None
    ) -> None:
        result.status = status
        result.cancelled = status == TransferStatus.CANCELLED
        result.completed_at = datetime.utcnow()
        if error and not result.aborted_reason:
            result.aborted_reason = error

        with self._lock:
            self.progress.status = status

        if plugins is not None:
            result.reports = self._generate_reports(result, plugins.reporters)

        logger.info(
            f"Transfer {status.value}: {result.transferred} transferred, "
            f"{result.skipped} skipped, {result.failed} failed of {result.total}"
        )
        if self.run_log is not None:
            self.run_log.write(
                "transfer_finished",
                status=status.value,
                dry_run=result.dry_run,
                total=result.total,
                transferred=result.transferred,
                skipped=result.skipped,
                failed=result.failed,
                duration_ms=round((result.duration_seconds or 0) * 1000),
                aborted_reason=result.aborted_reason,
                failures=[
                    {"record_id": i.record_id, "name": i.name, "reason": i.reason}
                    for i in result.items if i.status == RecordStatus.FAILED
                ],
            )
