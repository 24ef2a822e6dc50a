"""Reporter plugins writing transfer results to disk."""

import csv
import json
import logging
from abc import abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from ..models.record import RecordStatus, TransferItem
from ..models.transfer import ReportFile, TransferResult
from .base import Reporter

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "./reports"


class FileReporter(Reporter):
    """Reporter that writes a single timestamped file."""

    default_options = {"output_dir": DEFAULT_OUTPUT_DIR}

    def report_path(self) -> Path:
        output_dir = Path(self.get_option("output_dir", DEFAULT_OUTPUT_DIR))
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S_%f")
        return output_dir / f"transfer-report-{timestamp}.{self.file_format}"

    def generate(self, result: TransferResult) -> ReportFile:
        path = self.report_path()
        with open(path, "w", encoding="utf-8", newline="") as f:
            self.write(result, f)
        logger.info(f"Saved {self.file_format} report to {path}")
        return ReportFile(reporter=self.name, path=str(path), format=self.file_format)

    @abstractmethod
    def write(self, result: TransferResult, stream) -> None:
        pass


class JSONReporter(FileReporter):
    """Machine-readable report: metadata, statistics, records and errors."""

    name = "json"
    description = "Writes the transfer result as JSON"
    file_format = "json"

    def build(self, result: TransferResult) -> Dict[str, Any]:
        total = result.total
        return {
            "metadata": {
                "id": result.id,
                "generated_at": datetime.utcnow().isoformat(),
                "status": result.status.value,
                "dry_run": result.dry_run,
                "cancelled": result.cancelled,
                "aborted_reason": result.aborted_reason,
                "source": result.source_url,
                "target": result.target_url,
                "started_at": result.started_at.isoformat() if result.started_at else None,
                "completed_at": result.completed_at.isoformat() if result.completed_at else None,
                "duration_seconds": result.duration_seconds,
            },
            "statistics": {
                "total": total,
                "transferred": result.transferred,
                "skipped": result.skipped,
                "failed": result.failed,
                "success_rate": round(result.transferred / total * 100, 1) if total else 0.0,
            },
            "workflows": [item.to_dict() for item in result.items],
            "errors": [
                {"record_id": i.record_id, "name": i.name, "reason": i.reason}
                for i in result.items if i.status == RecordStatus.FAILED
            ],
        }

    def write(self, result: TransferResult, stream) -> None:
        json.dump(self.build(result), stream, indent=2, default=str)


class MarkdownReporter(FileReporter):
    """Human-readable summary with tables for each outcome."""

    name = "markdown"
    description = "Writes a Markdown summary of the transfer"
    file_format = "md"

    @staticmethod
    def _escape(value: Any) -> str:
        return str(value if value is not None else "").replace("|", "\\|").replace("\n", " ")

    def _table(self, title: str, headers: List[str], rows: List[List[Any]]) -> List[str]:
        lines = [f"## {title}", ""]
        if not rows:
            lines.extend(["_None_", ""])
            return lines
        lines.append("| # | " + " | ".join(headers) + " |")
        lines.append("|---|" + "---|" * len(headers))
        for index, row in enumerate(rows, 1):
            lines.append(f"| {index} | " + " | ".join(self._escape(v) for v in row) + " |")
        lines.append("")
        return lines

    def render(self, result: TransferResult) -> str:
        def by_status(status: RecordStatus) -> List[TransferItem]:
            return [i for i in result.items if i.status == status]

        lines = ["# Workflow Transfer Report", ""]
        if result.dry_run:
            lines.extend(["> **Dry run**: no records were written to the target.", ""])

        duration = f"{result.duration_seconds:.2f}s" if result.duration_seconds is not None else "n/a"
        lines.extend([
            "## Summary",
            "",
            "| Metric | Value |",
            "|---|---|",
            f"| Status | {result.status.value} |",
            f"| Source | {self._escape(result.source_url)} |",
            f"| Target | {self._escape(result.target_url)} |",
            f"| Total | {result.total} |",
            f"| Transferred | {result.transferred} |",
            f"| Skipped | {result.skipped} |",
            f"| Failed | {result.failed} |",
            f"| Duration | {duration} |",
            "",
        ])
        if result.aborted_reason:
            lines.extend([f"**Aborted:** {self._escape(result.aborted_reason)}", ""])

        lines.extend(self._table(
            "Transferred",
            ["Name", "Source ID", "Target ID"],
            [[i.name, i.record_id, i.target_id] for i in by_status(RecordStatus.TRANSFERRED)],
        ))
        lines.extend(self._table(
            "Skipped",
            ["Name", "Reason"],
            [[i.name, i.reason] for i in by_status(RecordStatus.SKIPPED)],
        ))
        lines.extend(self._table(
            "Failed",
            ["Name", "Error"],
            [[i.name, i.reason] for i in by_status(RecordStatus.FAILED)],
        ))
        return "\n".join(lines)

    def write(self, result: TransferResult, stream) -> None:
        stream.write(self.render(result))


class CSVReporter(FileReporter):
    """One row per record, for spreadsheets."""

    name = "csv"
    description = "Writes one CSV row per record"
    file_format = "csv"

    HEADERS = ["Name", "Status", "Tags", "Nodes", "Source ID", "Target ID", "Reason"]

    @staticmethod
    def row(item: TransferItem) -> List[Any]:
        return [
            item.name,
            item.status.value,
            ", ".join(item.tags),
            item.node_count,
            item.record_id,
            item.target_id or "",
            item.reason or "",
        ]

    def write(self, result: TransferResult, stream) -> None:
        writer = csv.writer(stream)
        writer.writerow(self.HEADERS)
        for item in result.items:
            writer.writerow(self.row(item))
