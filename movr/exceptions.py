"""
Custom exception hierarchy for Movr.

Parsing and filename generation never raise; these cover the session and
commit boundaries where the caller has to react.
"""


class MovrError(Exception):
    """Base exception for all Movr errors."""
    pass


class BatchValidationError(MovrError):
    """Raised when too many records have issues to start a commit."""

    def __init__(self, message: str, issues=None):
        super().__init__(message)
        self.issues = list(issues or [])


class EmptyBatchError(MovrError):
    """Raised when a commit is requested with no records loaded."""
    pass


class DestinationNotSetError(MovrError):
    """Raised when a commit is requested without a destination folder."""
    pass


class CommitInProgressError(MovrError):
    """Raised when records are edited while a commit is running."""
    pass


class RecordNotFoundError(MovrError):
    """Raised when a record id is not part of the current batch."""
    pass


class DatabaseError(MovrError):
    """Raised when session persistence fails."""
    pass
