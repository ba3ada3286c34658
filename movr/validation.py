import logging
from dataclasses import dataclass
from typing import Iterable, List

from . import config
from .exceptions import BatchValidationError
from .models import Record

MISSING_DESCRIPTION = "Missing description"
MISSING_REQUEST_ID = "Missing request ID"
CANNOT_GENERATE = "Cannot generate valid filename"


@dataclass(frozen=True)
class ValidationIssue:
    record_id: str
    filename: str
    message: str

    def __str__(self) -> str:
        return f"{self.filename}: {self.message}"


class ValidationGate:
    """
    Pre-commit checks.

    Each record is checked on its own (a record can carry several issues).
    The batch is refused outright when the share of records with at least
    one issue exceeds `threshold`.
    """

    def __init__(self, threshold: float = config.VALIDATION_FAILURE_THRESHOLD):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be between 0 and 1, got {threshold}")
        self.threshold = threshold

    def check_record(self, record: Record) -> List[ValidationIssue]:
        issues = []
        if not record.description:
            issues.append(self._issue(record, MISSING_DESCRIPTION))
        if not record.request_id:
            issues.append(self._issue(record, MISSING_REQUEST_ID))
        if not record.canonical_name:
            issues.append(self._issue(record, CANNOT_GENERATE))
        return issues

    def report(self, records: Iterable[Record]) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        for rec in records:
            issues.extend(self.check_record(rec))
        return issues

    def check_batch(self, records: List[Record]) -> List[ValidationIssue]:
        """
        Raises BatchValidationError (carrying every issue) when too many records
        are incomplete. Otherwise returns the issues of the records that will be
        skipped or committed as-is.
        """
        issues = self.report(records)
        failing = len({i.record_id for i in issues})
        total = len(records)

        if total and failing > total * self.threshold:
            logging.warning(f"Commit refused: {failing} of {total} files have validation issues.")
            raise BatchValidationError(
                f"Too many files have validation issues ({failing} of {total}). "
                "Please review and fix before processing.",
                issues,
            )

        if issues:
            logging.info(f"{failing} of {total} files have validation issues; continuing.")
        return issues

    def _issue(self, record: Record, message: str) -> ValidationIssue:
        return ValidationIssue(record.id, record.original_filename, message)
