"""
Token exchange and session credentials for the aWhere API.

aWhere issues short-lived bearer tokens through an OAuth2
client-credentials grant. A TokenSession owns one key/secret pair and the
single token currently in use for it; the request executor reads the token
from here and asks for a refresh when the API reports it as expired.
"""

from __future__ import annotations

import base64
import logging
import threading
from typing import Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from .config import DEFAULT_TOKEN_URL
from .errors import AuthenticationError
from .schema import TokenGrant


logger = logging.getLogger(__name__)


def _basic_auth_header(key: str, secret: str) -> str:
    raw = f"{key}:{secret}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


def authenticate(
    key: str,
    secret: str,
    session: Optional[requests.Session] = None,
    token_url: str = DEFAULT_TOKEN_URL,
    timeout: float = 15,
) -> str:
    """
    Exchange an API key/secret pair for a bearer token.

    Args:
        key: aWhere API key
        secret: aWhere API secret
        session: HTTP session to post with (a throwaway one if omitted)
        token_url: OAuth token endpoint
        timeout: Request timeout in seconds

    Returns:
        The access token string

    Raises:
        AuthenticationError: If the endpoint is unreachable, rejects the
            credentials, or replies without an access token
    """
    http = session or requests.Session()

    try:
        response = http.post(
            token_url,
            data="grant_type=client_credentials",
            headers={
                "Authorization": _basic_auth_header(key, secret),
                "Content-Type": "application/x-www-form-urlencoded",
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise AuthenticationError(
            f"Token request failed calling {token_url}"
        ) from e

    body = response.text or ""
    if not 200 <= response.status_code < 300:
        raise AuthenticationError(
            f"HTTP {response.status_code} returned from {token_url}",
            status=response.status_code,
            body=body,
        )

    try:
        grant = TokenGrant.model_validate(response.json())
    except (ValueError, PydanticValidationError) as e:
        raise AuthenticationError(
            f"No access token in reply from {token_url}",
            status=response.status_code,
            body=body,
        ) from e

    logger.info("Obtained aWhere access token (expires_in=%s)", grant.expires_in)
    return grant.access_token


class TokenSession:
    """
    Credentials plus the one active bearer token for them.

    Reads of `token` are cheap; refreshes are serialized so two threads that
    both see an expired token never overwrite a fresh token with a stale
    exchange.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        token: Optional[str] = None,
        http: Optional[requests.Session] = None,
        token_url: str = DEFAULT_TOKEN_URL,
        timeout: float = 15,
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.token_url = token_url
        self.timeout = timeout
        self.http = http or requests.Session()
        self._owns_http = http is None

        self._token = token
        self._lock = threading.Lock()

    @property
    def token(self) -> str:
        """Current token, authenticating first if none is held."""
        current = self._token
        if current:
            return current
        with self._lock:
            if not self._token:
                self._token = self._exchange()
            return self._token

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    def authenticate(self) -> str:
        """Exchange the credentials unconditionally and store the new token."""
        with self._lock:
            self._token = self._exchange()
            return self._token

    def refresh(self, stale_token: Optional[str]) -> str:
        """
        Replace `stale_token` with a fresh one.

        If another caller already swapped the token while we waited on the
        lock, its result is reused instead of exchanging again.
        """
        with self._lock:
            if self._token and self._token != stale_token:
                logger.debug("Token already refreshed by another caller")
                return self._token
            logger.warning("aWhere access token expired; requesting a new one")
            self._token = self._exchange()
            return self._token

    def close(self) -> None:
        """Close the HTTP session if this object created it."""
        if self._owns_http:
            self.http.close()

    def reset(self) -> None:
        with self._lock:
            self._token = None

    def _exchange(self) -> str:
        return authenticate(
            self.api_key,
            self.api_secret,
            session=self.http,
            token_url=self.token_url,
            timeout=self.timeout,
        )

    def __repr__(self) -> str:
        # never expose the secret or token
        return f"TokenSession(api_key={self.api_key!r}, has_token={self.has_token})"
