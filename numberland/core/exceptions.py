"""
Domain exceptions for the progress service.

Each exception carries the HTTP status and error code the API layer maps it
to, so routers never translate domain failures by hand.

Usage:
    from numberland.core.exceptions import ValidationError

    raise ValidationError("stars_achieved", "cannot exceed max stars")
"""

from typing import List, Optional


class ProgressError(Exception):
    """Base exception for progress tracking failures."""

    status_code: int = 500
    error_code: str = "progress_error"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ProgressError):
    """
    Raised when an activity event is malformed.

    The snapshot is never mutated when this is raised.
    """

    status_code = 422
    error_code = "validation_error"

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}", {"field": field, "reason": reason})
        self.field = field
        self.reason = reason


class NotFoundError(ProgressError):
    """Raised when a snapshot or category lookup yields nothing."""

    status_code = 404
    error_code = "not_found"

    def __init__(self, resource: str, key: str):
        super().__init__(f"{resource} not found: {key}", {"resource": resource, "key": key})
        self.resource = resource
        self.key = key


class ConcurrencyError(ProgressError):
    """Raised when a snapshot was modified by another writer since it was read."""

    status_code = 409
    error_code = "version_conflict"

    def __init__(self, key: str, expected_version: int):
        super().__init__(
            f"Snapshot {key} changed since version {expected_version}",
            {"key": key, "expected_version": expected_version},
        )
        self.key = key
        self.expected_version = expected_version


class BatchValidationError(ValidationError):
    """Raised when any event in a batch is malformed; nothing in the batch is applied."""

    def __init__(self, errors: List[ValidationError]):
        super().__init__(errors[0].field, errors[0].reason)
        self.errors = errors
        self.message = f"{len(errors)} invalid event(s) in batch"
        self.details = {
            "errors": [{"field": error.field, "reason": error.reason} for error in errors]
        }
