"""Exceptions raised by the personalization engine.

Each error carries an HTTP status code so the API layer can translate it
without knowing about individual error types.
"""

from typing import Any


class PersonalizationError(Exception):
    """Base exception for personalization errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class InvalidArgumentError(PersonalizationError):
    """Raised when a request is rejected before any lookup or mutation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=400, details=details)


class NotFoundError(PersonalizationError):
    """Raised when a required record does not exist."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} '{identifier}' not found",
            status_code=404,
            details={"resource": resource, "id": identifier},
        )


class UpstreamError(PersonalizationError):
    """Raised when the product catalog cannot be read."""

    def __init__(self, operation: str, error: Exception):
        super().__init__(
            message=f"Catalog request '{operation}' failed: {error}",
            status_code=502,
            details={
                "operation": operation,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
