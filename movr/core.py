import logging
import os
import threading
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from . import config
from .audit import AuditLog
from .commit.executor import CommitExecutor, ProgressCallback
from .commit.progress import BatchSummary
from .exceptions import (
    BatchValidationError,
    CommitInProgressError,
    DestinationNotSetError,
    EmptyBatchError,
    RecordNotFoundError,
)
from .models import Company, ImageType, NAMING_FIELDS, Record, apply_edit
from .naming.parser import parse_filename
from .scanning.filesystem import is_supported
from .validation import ValidationGate, ValidationIssue


@dataclass
class ImportResult:
    imported: int = 0
    duplicates: int = 0
    rejected: int = 0


@dataclass
class SessionStats:
    total: int = 0
    verified: int = 0
    by_type: Dict[ImageType, int] = field(default_factory=dict)
    by_company: Dict[Company, int] = field(default_factory=dict)


class AssetSession:
    """
    The batch of imported assets and every operation an operator performs on it.

    Collaborators (audit log, persistent store, thumbnail cache, validation
    gate, executor) are passed in; nothing here is process-global. Records
    are replaced, not edited in place, via `apply_edit`, except for the commit
    outcome which only the executor writes while a commit is running.
    """

    def __init__(self,
                 audit_log: Optional[AuditLog] = None,
                 store=None,
                 thumbnails=None,
                 gate: Optional[ValidationGate] = None,
                 executor: Optional[CommitExecutor] = None,
                 default_type: Optional[ImageType] = None,
                 destination_root: Optional[Path] = None):
        self.audit = audit_log if audit_log is not None else AuditLog()
        self.store = store
        self.thumbnails = thumbnails
        self.gate = gate if gate is not None else ValidationGate()
        self.executor = executor if executor is not None else CommitExecutor(audit_log=self.audit)
        self.default_type = default_type
        self.destination_root = Path(destination_root) if destination_root else None

        self._records: List[Record] = []
        self._lock = threading.RLock()
        self._committing = threading.Event()

    # --- Access ---

    @property
    def records(self) -> List[Record]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, record_id: str) -> Record:
        with self._lock:
            return self._records[self._index(record_id)]

    @property
    def is_committing(self) -> bool:
        return self._committing.is_set()

    # --- Import ---

    def import_paths(self, paths: Iterable[Path]) -> ImportResult:
        """
        Adds files to the batch. Unsupported extensions are rejected; paths
        already in the batch are skipped. The batch stays sorted by filename.
        """
        result = ImportResult()
        with self._lock:
            self._ensure_idle()
            known = {os.path.abspath(r.source_path) for r in self._records}

            for p in paths:
                if not is_supported(Path(p)):
                    result.rejected += 1
                    continue

                abs_path = os.path.abspath(p)
                if abs_path in known:
                    result.duplicates += 1
                    continue
                known.add(abs_path)

                rec = Record.from_path(Path(abs_path), self.default_type)
                self._records.append(rec)
                result.imported += 1
                self._log_parse(rec)

            self._records.sort(key=lambda r: r.original_filename)

        if result.imported:
            self.audit.log(
                "Files Imported", "Batch Import",
                f"Imported {result.imported} files, skipped {result.duplicates} duplicates",
            )
        logging.info(
            f"Import: {result.imported} added, {result.duplicates} duplicates, "
            f"{result.rejected} unsupported."
        )

        self._autosave()
        if self.thumbnails is not None and result.imported:
            self.thumbnails.preload([r.source_path for r in self.records])
        return result

    # --- Editing ---

    def update_record(self, record_id: str, **changes) -> Record:
        with self._lock:
            self._ensure_idle()
            idx = self._index(record_id)
            old = self._records[idx]
            new = apply_edit(old, **changes)
            self._records[idx] = new

        changed = [k for k in changes if getattr(old, k) != getattr(new, k)]
        naming_changed = [k for k in changed if k in NAMING_FIELDS]
        if naming_changed:
            described = ", ".join(
                f"{k}: {_display(getattr(old, k))} → {_display(getattr(new, k))}" for k in naming_changed
            )
            self.audit.log("Product Info Updated", new.original_filename, described)
            self._log_generation(new)
        if changed:
            self._autosave()
        return new

    def set_image_type(self, record_id: str, image_type) -> Record:
        old = self.get(record_id)
        rec = self.update_record(record_id, image_type=image_type)
        if old.image_type != rec.image_type:
            self.audit.log("Image Type Changed", rec.original_filename,
                           f"Changed from {old.image_type.label} to {rec.image_type.label}")
        return rec

    def apply_to_all(self, **changes) -> int:
        """Applies the same field values to every record. Returns how many changed."""
        changed = 0
        for rec in self.records:
            updated = self.update_record(rec.id, **changes)
            if any(getattr(rec, k) != getattr(updated, k) for k in changes):
                changed += 1
        self.audit.log("Batch Update", "Batch Operation",
                       f"Applied {', '.join(sorted(changes))} to {changed} of {len(self)} files")
        return changed

    def verify(self, record_id: str, verified: bool = True) -> Record:
        rec = self.update_record(record_id, verified=verified)
        self.audit.log(
            "File Verified" if verified else "File Unverified",
            rec.original_filename,
            "Marked as verified" if verified else "Verification removed",
        )
        return rec

    def all_verified(self) -> bool:
        records = self.records
        return bool(records) and all(r.verified for r in records)

    def toggle_verify_all(self) -> bool:
        """Verifies everything, or un-verifies everything if all were verified."""
        target = not self.all_verified()
        with self._lock:
            self._ensure_idle()
            self._records = [apply_edit(r, verified=target) for r in self._records]
        self.audit.log(
            "Verify All Files" if target else "Unverify All Files",
            "Batch Operation",
            f"{len(self)} files {'verified' if target else 'unverified'}",
        )
        self._autosave()
        return target

    # --- Removal ---

    def remove(self, record_id: str):
        with self._lock:
            self._ensure_idle()
            rec = self._records.pop(self._index(record_id))
        self.audit.log("File Removed", rec.original_filename, "File removed from current batch")
        self._autosave()

    def remove_many(self, record_ids: Iterable[str]) -> int:
        ids = set(record_ids)
        with self._lock:
            self._ensure_idle()
            before = len(self._records)
            self._records = [r for r in self._records if r.id not in ids]
            removed = before - len(self._records)
        self.audit.log("Bulk File Removal", "Batch Operation",
                       f"Removed {removed} files from current batch")
        self._autosave()
        return removed

    def clear(self):
        with self._lock:
            self._ensure_idle()
            self._records = []
        if self.store is not None:
            self.store.clear_session_records()
        self.audit.log("Files Cleared", "Application", "All files removed from current session")

    # --- Smart Operations ---

    def auto_fill_missing(self) -> int:
        """
        Re-parses incomplete records and fills their empty description and
        request ID. Companies learned from complete records (by request ID
        prefix) are applied to files whose name carries the same prefix.
        """
        learned: Dict[str, Company] = {}
        for rec in self.records:
            if rec.request_id and rec.description:
                prefix = _request_prefix(rec.request_id)
                if prefix:
                    learned.setdefault(prefix, rec.company)

        filled = 0
        for rec in self.records:
            if rec.description and rec.request_id:
                continue

            parsed = parse_filename(rec.original_filename)
            changes = {}
            if parsed.description and not rec.description:
                changes['description'] = parsed.description
            if parsed.request_id and not rec.request_id:
                changes['request_id'] = parsed.request_id

            company = None
            if parsed.request_id and parsed.company:
                company = Company.from_string(parsed.company)
            else:
                lowered = rec.original_filename.lower()
                for prefix, learned_company in learned.items():
                    if prefix.lower() in lowered:
                        company = learned_company
                        break
            if company is not None and company != rec.company:
                changes['company'] = company

            if changes:
                self.update_record(rec.id, **changes)
                filled += 1

        self.audit.log("Auto-Fill Applied", "Batch Operation",
                       f"Applied smart patterns to {filled} of {len(self)} files")
        return filled

    def duplicate(self, record_ids: Iterable[str]) -> List[Record]:
        """Adds copies of the given records; a copied description gets a `_copy` suffix."""
        created = []
        with self._lock:
            self._ensure_idle()
            for rid in record_ids:
                original = self._records[self._index(rid)]
                copy = Record.from_path(original.source_path, original.image_type)
                copy = apply_edit(
                    copy,
                    description=f"{original.description}_copy" if original.description else "",
                    request_id=original.request_id,
                    company=original.company,
                    sequence=original.sequence,
                )
                self._records.append(copy)
                created.append(copy)

        if created:
            self.audit.log("Files Duplicated", "Batch Operation",
                           f"Created {len(created)} duplicate files")
            self._autosave()
        return created

    # --- Reporting ---

    def stats(self) -> SessionStats:
        records = self.records
        return SessionStats(
            total=len(records),
            verified=sum(1 for r in records if r.verified),
            by_type=dict(Counter(r.image_type for r in records)),
            by_company=dict(Counter(r.company for r in records)),
        )

    def validation_report(self) -> List[ValidationIssue]:
        return self.gate.report(self.records)

    def search(self, query: str) -> List[Record]:
        """Case-insensitive match against filename, item number, request ID and new name."""
        if not query:
            return self.records
        q = query.lower()
        return [
            r for r in self.records
            if q in r.original_filename.lower()
            or q in r.description.lower()
            or q in r.request_id.lower()
            or q in (r.canonical_name or "").lower()
        ]

    # --- Persistence ---

    def save_state(self):
        if self.store is None:
            return
        self.store.save_session_records(self.records)
        if self.default_type is not None:
            self.store.set_setting("selected_batch_type", self.default_type.slug)
        if self.destination_root is not None:
            self.store.set_setting("destination_path", str(self.destination_root))

    def restore_state(self) -> int:
        """
        Rebuilds the batch from the store. Stored fields win; anything not
        stored is derived from the filename again. Files that disappeared
        since the save are dropped.
        """
        if self.store is None:
            return 0

        saved_type = self.store.get_setting("selected_batch_type")
        if saved_type and self.default_type is None:
            self.default_type = ImageType.from_string(saved_type)
        saved_dest = self.store.get_setting("destination_path")
        if saved_dest and self.destination_root is None:
            self.destination_root = Path(saved_dest)

        restored = []
        for row in self.store.load_session_records():
            path = Path(row['path'])
            if not path.exists():
                logging.warning(f"Saved file no longer exists, dropping: {path}")
                continue

            itype = ImageType.from_string(row['image_type']) if row['image_type'] else self.default_type
            rec = Record.from_path(path, itype)
            stored = {
                k: row[k]
                for k in ('description', 'request_id', 'company', 'sequence', 'retouched', 'verified')
                if row[k] is not None
            }
            restored.append(apply_edit(rec, **stored))

        with self._lock:
            self._ensure_idle()
            self._records = restored

        if restored:
            self.audit.log("Session Restored", "Application",
                           f"Loaded {len(restored)} files from previous session")
        return len(restored)

    def export_settings(self) -> dict:
        return {
            "defaultBatchType": self.default_type.slug if self.default_type else "",
            "destinationPath": str(self.destination_root) if self.destination_root else "",
            "username": self.audit.user,
            "version": config.SETTINGS_VERSION,
        }

    def import_settings(self, settings: dict):
        batch_type = settings.get("defaultBatchType")
        if batch_type:
            self.default_type = ImageType.from_string(batch_type)
        dest = settings.get("destinationPath")
        if dest:
            self.destination_root = Path(dest)
        self.audit.log("Settings Imported", "Application", "Applied imported configuration settings")

    def recent_destinations(self) -> List[str]:
        if self.store is None:
            return []
        return self.store.get_recent_paths()

    # --- Commit ---

    def commit(self,
               destination_root: Optional[Path] = None,
               on_progress: Optional[ProgressCallback] = None) -> BatchSummary:
        """
        Validates the batch and copies every record into the destination tree.

        Raises DestinationNotSetError / EmptyBatchError / BatchValidationError
        before anything is written; per-file problems end up on the records.
        """
        dest = Path(destination_root) if destination_root else self.destination_root
        if dest is None:
            self._refuse("Please select a destination folder first.", DestinationNotSetError)

        with self._lock:
            self._ensure_idle()
            batch = list(self._records)
            if not batch:
                self._refuse("No files to process.", EmptyBatchError)
            try:
                self.gate.check_batch(batch)
            except BatchValidationError as e:
                self.audit.log("Error", "Application", str(e))
                raise
            self._committing.set()

        self.destination_root = dest
        try:
            if self.store is not None:
                self.store.add_recent_path(str(dest), config.MAX_RECENT_PATHS)
            return self.executor.execute(batch, dest, on_progress)
        finally:
            self._committing.clear()
            self._autosave()

    def commit_in_background(self, worker, destination_root: Optional[Path] = None,
                             on_progress: Optional[ProgressCallback] = None):
        """Queues commit() on a CommitWorker. Returns the worker's Future."""
        return worker.submit(self.commit, destination_root, on_progress)

    # --- Internals ---

    def _index(self, record_id: str) -> int:
        for i, r in enumerate(self._records):
            if r.id == record_id:
                return i
        raise RecordNotFoundError(f"No record with id {record_id}")

    def _ensure_idle(self):
        if self._committing.is_set():
            raise CommitInProgressError("Records cannot be changed while a commit is running.")

    def _refuse(self, message: str, exc_type):
        self.audit.log("Error", "Application", message)
        raise exc_type(message)

    def _autosave(self):
        if self.store is not None and not self._committing.is_set():
            self.save_state()

    def _log_parse(self, rec: Record):
        p = rec.parsed
        found = [
            f"{label}={value}"
            for label, value in (
                ("company", p.company),
                ("item", p.description),
                ("request", p.request_id),
                ("sequence", p.sequence),
            )
            if value
        ]
        self.audit.log("Filename Parsed", rec.original_filename,
                       ", ".join(found) if found else "no metadata found")
        self._log_generation(rec)

    def _log_generation(self, rec: Record):
        self.audit.log("Filename Generated", rec.original_filename,
                       rec.canonical_name or "missing required information")


def _request_prefix(request_id: str) -> str:
    for prefix in ("MO", "PH"):
        if request_id.startswith(prefix):
            return prefix
    return ""


def _display(value) -> str:
    if isinstance(value, Company):
        return value.value
    if isinstance(value, ImageType):
        return value.label
    return str(value)
