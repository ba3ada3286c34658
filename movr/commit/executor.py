import logging
import shutil
import time
from pathlib import Path
from typing import Callable, List, Optional

from tqdm import tqdm

from .. import config
from ..models import CommitOutcome, CommitStatus, Record
from .progress import BatchSummary, ProgressSnapshot, ProgressTracker

MISSING_INFO_REASON = "missing required information"
PARTIAL_SUFFIX = ".partial"

ProgressCallback = Callable[[ProgressSnapshot, Record], None]


class CommitExecutor:
    """
    Copies records into the destination tree under their canonical names.

    Records are handled one at a time in the order given. A record without a
    canonical name is skipped; an existing destination file is never
    overwritten (the copy gets a timestamped sibling name instead); any error
    is stored on that record and the batch moves on. Sources are only read.
    """

    def __init__(self,
                 audit_log=None,
                 yield_interval: float = config.COMMIT_YIELD_SECONDS,
                 show_progress: bool = False,
                 clock: Callable[[], float] = time.monotonic,
                 timestamp: Callable[[], float] = time.time):
        self.audit = audit_log
        self.yield_interval = yield_interval
        self.show_progress = show_progress
        self.clock = clock
        self.timestamp = timestamp

    def execute(self,
                records: List[Record],
                destination_root: Path,
                on_progress: Optional[ProgressCallback] = None) -> BatchSummary:
        destination_root = Path(destination_root)
        tracker = ProgressTracker(len(records), clock=self.clock)
        counts = {status: 0 for status in CommitStatus}

        logging.info(f"Committing {len(records)} files to {destination_root}...")

        for record in tqdm(records, desc="Committing", disable=not self.show_progress):
            outcome = self._commit_one(record, destination_root)
            # Assigned only once fully decided
            record.outcome = outcome
            counts[outcome.status] += 1
            self._log_outcome(record, outcome)

            snapshot = tracker.advance()
            if on_progress:
                on_progress(snapshot, record)

            if self.yield_interval > 0:
                time.sleep(self.yield_interval)

        summary = BatchSummary(
            total=len(records),
            committed=counts[CommitStatus.COMMITTED],
            renamed=counts[CommitStatus.COMMITTED_RENAMED],
            skipped=counts[CommitStatus.SKIPPED_NO_NAME],
            failed=counts[CommitStatus.FAILED],
            elapsed=tracker.elapsed,
        )
        logging.info(summary.message())
        self._audit(
            "Processing Complete",
            "Batch Operation",
            f"Processed {summary.success_count} files successfully, "
            f"{summary.error_count} errors in {summary.elapsed:.1f} seconds",
        )
        return summary

    def _commit_one(self, record: Record, destination_root: Path) -> CommitOutcome:
        name = record.canonical_name
        if not name:
            return CommitOutcome(CommitStatus.SKIPPED_NO_NAME, reason=MISSING_INFO_REASON)

        partial = None
        try:
            dest_dir = destination_root / record.image_type.destination_folder
            dest_dir.mkdir(parents=True, exist_ok=True)

            dest = dest_dir / name
            status = CommitStatus.COMMITTED
            if dest.exists():
                dest = self._disambiguate(dest)
                status = CommitStatus.COMMITTED_RENAMED

            # Copy under a hidden name first so a failed copy never occupies `dest`
            partial = dest.with_name(f".{dest.name}{PARTIAL_SUFFIX}")
            shutil.copy2(str(record.source_path), str(partial))
            partial.rename(dest)
            return CommitOutcome(status, destination=dest)

        except Exception as e:
            logging.error(f"Failed to process {record.source_path} -> {name}: {e}")
            if partial is not None:
                try:
                    partial.unlink(missing_ok=True)
                except OSError as cleanup_err:
                    logging.error(f"Could not remove partial copy {partial}: {cleanup_err}")
            return CommitOutcome(CommitStatus.FAILED, reason=str(e))

    def _disambiguate(self, dest: Path) -> Path:
        """
        `<stem>_<unix seconds><ext>`; a counter is appended if several
        collisions land in the same second.
        """
        stamp = int(self.timestamp())
        candidate = dest.with_name(f"{dest.stem}_{stamp}{dest.suffix}")
        n = 1
        while candidate.exists():
            candidate = dest.with_name(f"{dest.stem}_{stamp}_{n}{dest.suffix}")
            n += 1
        return candidate

    def _log_outcome(self, record: Record, outcome: CommitOutcome):
        if outcome.status == CommitStatus.COMMITTED:
            self._audit("File Processed", record.original_filename,
                        f"Copied to {outcome.destination}")
        elif outcome.status == CommitStatus.COMMITTED_RENAMED:
            self._audit("File Processed (Renamed)", record.original_filename,
                        f"Copied to {outcome.destination} (original name existed)")
        elif outcome.status == CommitStatus.SKIPPED_NO_NAME:
            self._audit("File Skipped", record.original_filename,
                        f"Cannot generate valid filename - {outcome.reason}")
        else:
            self._audit("File Processing Error", record.original_filename,
                        f"Error: {outcome.reason}")

    def _audit(self, action: str, subject: str, result: str):
        # An audit failure is reported but never stops the batch
        if self.audit is None:
            return
        try:
            self.audit.log(action, subject, result)
        except Exception as e:
            logging.error(f"Failed to write audit entry '{action}' for {subject}: {e}")
