from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .auth import TokenSession
from .errors import (
    AWhereError,
    ApiRequestError,
    ApiTimeoutError,
    AuthenticationError,
    MalformedResponseError,
)
from .normalizer import normalize
from .schema import RawResponse, RequestDescriptor


logger = logging.getLogger(__name__)

EXPIRED_TOKEN_SENTINEL = "API Access Expired"

# JSON fields the API uses for its human-readable error text
_ERROR_MESSAGE_FIELDS = ("simpleMessage", "detailedMessage", "error", "message")


def is_token_expired(body_text: str) -> bool:
    """
    True when a response body reports an expired or invalid bearer token.

    JSON objects are judged only by their error message fields, so data
    that happens to contain the sentinel text never triggers a refresh. The
    raw substring match applies to bodies that are not JSON objects.
    """
    if not body_text:
        return False

    try:
        payload = json.loads(body_text)
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        for field in _ERROR_MESSAGE_FIELDS:
            value = payload.get(field)
            if isinstance(value, str) and value.strip() == EXPIRED_TOKEN_SENTINEL:
                return True
        return False

    return EXPIRED_TOKEN_SENTINEL in body_text


class BaseAPIClient:
    """
    Authenticated HTTP client for the aWhere API.

    Features:
    - Persistent session
    - Bearer token attached to every call
    - Transparent token refresh when the API reports the token expired
    - Retry with exponential backoff on transient HTTP failures
    - Configurable timeout
    """

    DEFAULT_TIMEOUT = 15  # seconds
    DEFAULT_RETRIES = 3
    DEFAULT_BACKOFF_FACTOR = 0.5
    DEFAULT_MAX_TOKEN_REFRESHES = 3

    def __init__(
        self,
        tokens: TokenSession,
        default_headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        backoff_factor: Optional[float] = None,
        max_token_refreshes: Optional[int] = None,
    ) -> None:

        self.tokens = tokens
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.max_token_refreshes = (
            max_token_refreshes
            if max_token_refreshes is not None
            else self.DEFAULT_MAX_TOKEN_REFRESHES
        )

        self.session = requests.Session()

        # Default headers
        headers = {
            "User-Agent": "awhere-client/0.1",
            "Accept": "application/json",
        }

        if default_headers:
            headers.update(default_headers)

        self.session.headers.update(headers)

        # Retry strategy (transport level only; token expiry is handled in execute)
        retry_strategy = Retry(
            total=retries if retries is not None else self.DEFAULT_RETRIES,
            backoff_factor=backoff_factor if backoff_factor is not None else self.DEFAULT_BACKOFF_FACTOR,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    # ---------------------------------------------------
    # Core request method
    # ---------------------------------------------------
    def execute(self, descriptor: RequestDescriptor) -> str:
        """
        Send one request and return the response body text.

        If the API answers with its expired-token sentinel, a new token is
        fetched and the same descriptor is replayed, at most
        `max_token_refreshes` times.

        Raises:
            AuthenticationError: token exchange failed, or the token kept
                expiring past the refresh bound
            ApiRequestError: non-success HTTP status or transport failure
        """
        refreshes = 0

        while True:
            token = self.tokens.token
            raw = self._send(descriptor, token)

            if is_token_expired(raw.body_text):
                if refreshes >= self.max_token_refreshes:
                    raise AuthenticationError(
                        f"Access token still expired after {refreshes} refresh(es) "
                        f"calling {descriptor.url}",
                        status=raw.status_code,
                        body=raw.body_text,
                    )
                refreshes += 1
                self.tokens.refresh(token)
                continue

            if not raw.ok:
                raise ApiRequestError(
                    f"HTTP {raw.status_code} returned from {descriptor.url}",
                    status=raw.status_code,
                    body=raw.body_text,
                )

            return raw.body_text

    def _send(self, descriptor: RequestDescriptor, token: str) -> RawResponse:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        logger.debug("%s %s", descriptor.method, descriptor.url)
        try:
            response = self.session.request(
                descriptor.method,
                descriptor.url,
                data=descriptor.body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise ApiTimeoutError(
                f"Request timed out calling {descriptor.url}"
            ) from e
        except requests.RequestException as e:
            raise ApiRequestError(
                f"Request failed calling {descriptor.url}"
            ) from e

        return RawResponse(status_code=response.status_code, body_text=response.text or "")

    # ---------------------------------------------------
    # Convenience wrappers
    # ---------------------------------------------------
    def get_json(self, descriptor: RequestDescriptor) -> Any:
        """Execute and parse the body as JSON."""
        body = self.execute(descriptor)
        try:
            return json.loads(body)
        except ValueError as e:
            raise MalformedResponseError(
                f"Invalid JSON returned from {descriptor.url}"
            ) from e

    def get_table(
        self,
        descriptor: RequestDescriptor,
        data_key: Optional[str] = None,
        drop_leap_day: bool = False,
        date_field: str = "day",
    ) -> pd.DataFrame:
        """Execute and reshape the response into a metadata-free DataFrame."""
        body = self.execute(descriptor)
        df = normalize(
            body,
            data_key=data_key,
            drop_leap_day=drop_leap_day,
            date_field=date_field,
        )
        logger.debug(
            "Normalized %d rows x %d columns from %s",
            len(df),
            len(df.columns),
            descriptor.url,
        )
        return df

    def close(self) -> None:
        self.session.close()
        self.tokens.close()

    def __enter__(self) -> "BaseAPIClient":
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        self.close()


__all__ = [
    "BaseAPIClient",
    "EXPIRED_TOKEN_SENTINEL",
    "is_token_expired",
    "AWhereError",
    "ApiRequestError",
    "ApiTimeoutError",
    "AuthenticationError",
    "MalformedResponseError",
]
