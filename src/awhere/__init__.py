"""Python client for the aWhere agronomic and weather API."""

from awhere.api import (
    AWhereClient,
    AWhereConfig,
    AWhereError,
    ApiRequestError,
    AuthenticationError,
    MalformedResponseError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "AWhereClient",
    "AWhereConfig",
    "AWhereError",
    "ApiRequestError",
    "AuthenticationError",
    "MalformedResponseError",
    "ValidationError",
]
