from __future__ import annotations


class DomainError(Exception):
    """Base class for errors surfaced to API callers.

    Every subclass carries a stable machine-readable ``kind`` and the HTTP
    status used when it crosses the API boundary.
    """

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class ValidationError(DomainError):
    kind = "validation_error"
    status_code = 400


class NotFound(DomainError):
    kind = "not_found"
    status_code = 404


class Conflict(DomainError):
    kind = "conflict"
    status_code = 409


class FeatureUnavailable(DomainError):
    kind = "feature_unavailable"
    status_code = 501


class PersistenceFailure(DomainError):
    kind = "persistence_failure"
    status_code = 500
