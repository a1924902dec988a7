"""
Error taxonomy shared by services and routes.

Every failure carries a stable ``kind`` and a human-readable message that is
safe to show to an untrusted caller. Routes never format raw SDK errors.
"""

from typing import Optional


class CityReporterError(Exception):
    """Base class for all expected service failures."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, *, retryable: bool = False, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.retryable = retryable
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.kind, "message": self.message}
        if self.retryable:
            body["retryable"] = True
        return body


class ValidationError(CityReporterError):
    """Missing or malformed input. Raised before any side effect."""

    kind = "validation_error"
    status_code = 400


class InvalidStatusError(ValidationError):
    kind = "invalid_status"


class NotFoundError(CityReporterError):
    """A referenced user, admin, office, report or comment does not exist."""

    kind = "not_found"
    status_code = 404


class DependencyError(CityReporterError):
    """An external collaborator (blob store, mail transport) failed."""

    kind = "dependency_error"
    status_code = 502


class StorageError(DependencyError):
    kind = "storage_error"


class PersistenceError(CityReporterError):
    """Firestore was unreachable or rejected a read/write."""

    kind = "persistence_error"
    status_code = 503
