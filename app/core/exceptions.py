"""
Exceptions
==========
Error taxonomy shared by the service layer and the API routers.

    BugValidationError  — field-scoped rule violations, nothing was written   (HTTP 400)
    InvalidActionError  — unknown workflow action name                       (HTTP 400)
    BugNotFoundError    — id does not resolve to a stored record             (HTTP 404)
    StorageError        — the backing store failed; opaque, never retried    (HTTP 500)
"""
from typing import List, Optional

from app.core.validation import format_validation_errors
from app.models.bug import FieldError


class BugTrackerError(Exception):
    """Base exception for the bug tracker core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BugValidationError(BugTrackerError):
    """Raised when a create/update payload fails one or more rules."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        super().__init__(format_validation_errors(self.errors))


class BugNotFoundError(BugTrackerError):
    def __init__(self, bug_id: str):
        super().__init__("Bug not found")
        self.bug_id = bug_id


class InvalidActionError(BugTrackerError):
    def __init__(self, action: str):
        super().__init__(f"Unknown action '{action}'")
        self.action = action


class StorageError(BugTrackerError):
    """Raised by repositories when the underlying medium is unreachable or corrupt."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
