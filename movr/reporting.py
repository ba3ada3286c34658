import csv
import logging
from pathlib import Path
from typing import Iterable, List

from . import config
from .models import CommitStatus, Record

STATUS_LABELS = {
    CommitStatus.COMMITTED: "Committed",
    CommitStatus.COMMITTED_RENAMED: "Committed (Renamed)",
    CommitStatus.SKIPPED_NO_NAME: "Skipped",
    CommitStatus.FAILED: "Failed",
}


class ReportGenerator:
    def generate_commit_report(self, records: Iterable[Record], output_csv: Path) -> int:
        """
        Writes one CSV row per record describing where it went (or why not).
        Records that were never committed are reported as 'Pending'.
        """
        output_csv = Path(output_csv)
        output_csv.parent.mkdir(parents=True, exist_ok=True)
        logging.info(f"Generating commit report -> {output_csv}")

        count = 0
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(config.REPORT_HEADERS)
            for rec in records:
                writer.writerow(self._row(rec))
                count += 1

        logging.info(f"Report complete. {count} files listed.")
        return count

    def _row(self, rec: Record) -> List[str]:
        outcome = rec.outcome
        status = STATUS_LABELS[outcome.status] if outcome else "Pending"
        dest = str(outcome.destination) if outcome and outcome.destination else ""

        notes = ""
        if outcome and outcome.reason:
            notes = outcome.reason
        elif outcome is None and not rec.canonical_name:
            notes = "Missing required information"

        return [
            str(rec.source_path),
            rec.original_filename,
            rec.image_type.label,
            rec.canonical_name or "",
            status,
            dest,
            notes,
        ]
