from __future__ import annotations

from typing import Optional


class AWhereError(RuntimeError):
    """Base error for aWhere client failures."""


class AWhereConfigError(AWhereError):
    """Raised when required environment configuration is missing or invalid."""


class AuthenticationError(AWhereError):
    """Raised when the token endpoint rejects the key/secret exchange."""

    def __init__(
        self, message: str, status: Optional[int] = None, body: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class ApiRequestError(AWhereError):
    """Raised for non-success HTTP responses and transport failures."""

    def __init__(
        self, message: str, status: Optional[int] = None, body: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class ApiTimeoutError(ApiRequestError):
    """Raised when request times out."""


class MalformedResponseError(AWhereError):
    """Raised when a response body is not JSON or lacks the expected data."""


class ValidationError(AWhereError, ValueError):
    """Raised when a request parameter fails a pre-flight check."""
