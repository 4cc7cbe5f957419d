"""
awhere - API Module

Authenticated access to the aWhere agronomic/weather REST API.

Usage:
------
    from awhere.api import AWhereClient

    client = AWhereClient()  # reads AWHERE_* environment variables
    norms = client.weather_norms_latlng(
        latitude=39.8282,
        longitude=-98.5795,
        monthday_start="02-01",
        monthday_end="03-10",
        year_start=2008,
        year_end=2015,
        exclude_years=[2010, 2011],
    )

Configuration:
--------------
    AWHERE_API_KEY              - API key (required)
    AWHERE_API_SECRET           - API secret (required)
    AWHERE_BASE_URL             - Override API root
    AWHERE_TOKEN_URL            - Override OAuth token endpoint
    AWHERE_TIMEOUT_SEC          - Request timeout (default: 15)
    AWHERE_MAX_TOKEN_REFRESHES  - Token refreshes per call (default: 3)
"""

# -----------------------------------------------------------------------------
# Errors
# -----------------------------------------------------------------------------
from .errors import (
    AWhereError,
    AWhereConfigError,
    ApiRequestError,
    ApiTimeoutError,
    AuthenticationError,
    MalformedResponseError,
    ValidationError,
)

# -----------------------------------------------------------------------------
# Token handling and request execution
# -----------------------------------------------------------------------------
from .auth import TokenSession, authenticate
from .client_base import BaseAPIClient, EXPIRED_TOKEN_SENTINEL, is_token_expired

# -----------------------------------------------------------------------------
# Response normalization
# -----------------------------------------------------------------------------
from .normalizer import drop_leap_days, normalize, strip_metadata_columns

# -----------------------------------------------------------------------------
# Endpoint client
# -----------------------------------------------------------------------------
from .config import AWhereConfig
from .awhere_api import AWhereClient
from .schema import RawResponse, RequestDescriptor, TokenGrant


__all__ = [
    # Errors
    "AWhereError",
    "AWhereConfigError",
    "ApiRequestError",
    "ApiTimeoutError",
    "AuthenticationError",
    "MalformedResponseError",
    "ValidationError",
    # Auth + executor
    "TokenSession",
    "authenticate",
    "BaseAPIClient",
    "EXPIRED_TOKEN_SENTINEL",
    "is_token_expired",
    # Normalizer
    "drop_leap_days",
    "normalize",
    "strip_metadata_columns",
    # Client
    "AWhereConfig",
    "AWhereClient",
    # Schema
    "RawResponse",
    "RequestDescriptor",
    "TokenGrant",
]
