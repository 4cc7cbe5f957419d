from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RequestDescriptor(BaseModel):
    """
    A fully-formed call against the aWhere API.

    Built once by the URL layer and replayed unchanged when the bearer
    token has to be refreshed mid-call.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Absolute request URL")
    method: Literal["GET", "POST"] = Field("GET", description="HTTP method")
    body: Optional[str] = Field(None, description="Raw request body (JSON text)")

    @field_validator("method", mode="before")
    @classmethod
    def validate_method(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class RawResponse(BaseModel):
    """Status code and body text of a single HTTP exchange."""

    status_code: int
    body_text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class TokenGrant(BaseModel):
    """Reply of the OAuth token endpoint (client-credentials grant)."""

    access_token: str = Field(..., min_length=1)
    expires_in: Optional[int] = Field(
        None, description="Token lifetime in seconds (if provided)"
    )

    @field_validator("expires_in", mode="before")
    @classmethod
    def validate_expires_in(cls, v):
        if v is None:
            return None
        try:
            return int(v)
        except (ValueError, TypeError):
            return None
