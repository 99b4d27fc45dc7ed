"""Typed errors raised by the revision log.

Every error carries a machine-readable ``code`` so the request layer can
render or map it without parsing messages.

    LedgerError
    +-- ValidationError          rejected before any write
    |   +-- BucketFormatError    malformed quarter / month bucket
    +-- NotFoundError            unknown project, empty history
    +-- ConcurrencyConflictError append lost a race; retry with fresh input
    +-- StorageError             transport failure or timeout; retryable
"""

from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    """Base class for all revision-log errors."""

    code: str = "LEDGER_ERROR"
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError, ValueError):
    """Input rejected before anything was written."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, subject: str, exc: Any) -> ValidationError:
        """Wrap a pydantic ValidationError, keeping its error list."""
        errors = exc.errors(include_url=False)
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or subject}: {err['msg']}" for err in errors
        )
        return cls(f"Invalid {subject}: {details}", errors=errors)


class BucketFormatError(ValidationError):
    """A quarter or month bucket does not match its strict format."""

    code = "BUCKET_FORMAT_ERROR"

    def __init__(self, field: str, value: str | None, expected: str) -> None:
        super().__init__(f"{field} must match '{expected}' (got {value!r})")
        self.field = field
        self.value = value
        self.expected = expected


class NotFoundError(LedgerError, LookupError):
    """The project does not exist or has no versions."""

    code = "NOT_FOUND"

    def __init__(self, project_id: object, message: str | None = None) -> None:
        super().__init__(message or f"Project {project_id} not found")
        self.project_id = project_id


class ConcurrencyConflictError(LedgerError):
    """A competing append on the same project won the version number."""

    code = "CONCURRENCY_CONFLICT"
    retryable = True


class StorageError(LedgerError):
    """The storage layer failed or timed out. Nothing was committed."""

    code = "STORAGE_ERROR"
    retryable = True
