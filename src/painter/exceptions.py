"""Custom exceptions for the market mood painter.

Every pipeline and archive failure is raised as one of these so callers can
branch on the error kind instead of inspecting messages. ``kind`` names the
error category used in logs and HTTP responses.
"""

from typing import Any


class PainterError(Exception):
    """Base exception for all painter errors."""

    kind = "PainterError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for logs and API error bodies."""
        return {"error": self.kind, "message": self.message}


class ExternalApiError(PainterError):
    """Raised when an upstream provider returns an error or unusable payload."""

    kind = "ExternalApiError"

    def __init__(self, message: str, provider: str, status: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "provider": self.provider, "status": self.status}


class RateLimitError(ExternalApiError):
    """Raised when a provider rejects the request with HTTP 429."""


class AuthenticationError(ExternalApiError):
    """Raised when a provider rejects our credentials (401/403)."""


class NetworkError(ExternalApiError):
    """Raised when a provider cannot be reached at the transport level."""


class EmptyResponseError(ExternalApiError):
    """Raised when a provider answers successfully but returns no data."""


class StorageError(PainterError):
    """Raised when an object store or relational index operation fails."""

    kind = "StorageError"

    def __init__(self, message: str, op: str, key: str | None = None) -> None:
        super().__init__(message)
        self.op = op
        self.key = key

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "op": self.op, "key": self.key}


class ValidationError(PainterError):
    """Raised when caller input or provider data fails validation."""

    kind = "ValidationError"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "details": self.details}


class ConfigurationError(PainterError):
    """Raised when a required setting is missing for the selected wiring."""

    kind = "ConfigurationError"

    def __init__(self, message: str, missing: str) -> None:
        super().__init__(message)
        self.missing = missing

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "missing": self.missing}


class OperationTimeoutError(PainterError):
    """Raised when an external call exceeds its configured timeout.

    Retryable by the caller: the next scheduler tick may simply try again.
    """

    kind = "TimeoutError"

    def __init__(
        self,
        message: str,
        provider: str,
        timeout_seconds: float,
        elapsed_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.elapsed_seconds = elapsed_seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            **super().to_dict(),
            "provider": self.provider,
            "timeout_seconds": self.timeout_seconds,
            "elapsed_seconds": self.elapsed_seconds,
        }


class InternalError(PainterError):
    """Raised when an unexpected exception escapes a pipeline step."""

    kind = "InternalError"

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
