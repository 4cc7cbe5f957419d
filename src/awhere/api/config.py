from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field

from .errors import AWhereConfigError


DEFAULT_BASE_URL = "https://api.awhere.com"
DEFAULT_TOKEN_URL = "https://api.awhere.com/oauth/token"


class AWhereConfig(BaseModel):
    """
    Connection settings for one aWhere client.

    Pass an instance to AWhereClient explicitly, or build one from the
    process environment with `AWhereConfig.from_env()`:

        AWHERE_API_KEY              - API key (required by the client)
        AWHERE_API_SECRET           - API secret (required by the client)
        AWHERE_BASE_URL             - Override API root (default: https://api.awhere.com)
        AWHERE_TOKEN_URL            - Override OAuth token endpoint
        AWHERE_TIMEOUT_SEC          - Request timeout (default: 15)
        AWHERE_MAX_TOKEN_REFRESHES  - Refresh attempts per call (default: 3)
    """

    api_key: Optional[str] = Field(None, description="aWhere API key")
    api_secret: Optional[str] = Field(None, description="aWhere API secret")
    base_url: str = Field(DEFAULT_BASE_URL, description="API root URL")
    token_url: str = Field(DEFAULT_TOKEN_URL, description="OAuth token endpoint")
    timeout: float = Field(15.0, gt=0, description="Request timeout in seconds")
    max_token_refreshes: int = Field(
        3, ge=0, description="Token refreshes allowed within a single call"
    )

    @classmethod
    def from_env(cls) -> "AWhereConfig":
        timeout_raw = os.getenv("AWHERE_TIMEOUT_SEC", "15").strip()
        try:
            timeout = float(timeout_raw)
        except ValueError as e:
            raise AWhereConfigError(
                f"AWHERE_TIMEOUT_SEC must be a number, got '{timeout_raw}'."
            ) from e

        refreshes_raw = os.getenv("AWHERE_MAX_TOKEN_REFRESHES", "3").strip()
        try:
            max_token_refreshes = int(refreshes_raw)
        except ValueError as e:
            raise AWhereConfigError(
                f"AWHERE_MAX_TOKEN_REFRESHES must be an integer, got '{refreshes_raw}'."
            ) from e

        if timeout <= 0 or max_token_refreshes < 0:
            raise AWhereConfigError(
                "AWHERE_TIMEOUT_SEC must be positive and "
                "AWHERE_MAX_TOKEN_REFRESHES must not be negative."
            )

        return cls(
            api_key=os.getenv("AWHERE_API_KEY") or None,
            api_secret=os.getenv("AWHERE_API_SECRET") or None,
            base_url=os.getenv("AWHERE_BASE_URL") or DEFAULT_BASE_URL,
            token_url=os.getenv("AWHERE_TOKEN_URL") or DEFAULT_TOKEN_URL,
            timeout=timeout,
            max_token_refreshes=max_token_refreshes,
        )
