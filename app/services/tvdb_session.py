"""Process-wide cache for TheTVDB bearer tokens."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from ..config import Settings
from ..errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionToken:
    """A bearer token and the instant after which it is no longer served."""

    token: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class TVDBSessionCache:
    """Logs in to TheTVDB once and reuses the token until it expires.

    ``clock`` returns the current instant in seconds and defaults to
    :func:`time.time`; tests inject their own to step across the expiry
    boundary. Logins are serialised so concurrent callers that find the
    cache empty share the result of a single exchange.
    """

    _LOGIN_PATH = "/login"

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self._client = http_client
        self._ttl = float(settings.tvdb_token_ttl_seconds)
        self._clock = clock
        self._session: SessionToken | None = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> SessionToken | None:
        """Return the cached session, expired or not."""

        return self._session

    def invalidate(self) -> None:
        """Forget the cached token so the next call logs in again."""

        self._session = None

    async def get_token(self, api_key: str) -> str:
        """Return a valid bearer token, logging in when the cache is stale."""

        cached = self._cached_token()
        if cached is not None:
            return cached

        async with self._lock:
            # Another caller may have logged in while we waited.
            cached = self._cached_token()
            if cached is not None:
                return cached

            token = await self._login(api_key)
            self._session = SessionToken(token=token, expires_at=self._clock() + self._ttl)
            logger.info("Obtained TheTVDB token valid for %.0fs", self._ttl)
            return token

    def _cached_token(self) -> str | None:
        session = self._session
        if session is not None and session.is_valid(self._clock()):
            return session.token
        return None

    async def _login(self, api_key: str) -> str:
        try:
            response = await self._client.post(
                self._LOGIN_PATH,
                json={"apikey": api_key},
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            logger.warning("TheTVDB login request failed: %s", exc)
            raise AuthenticationError(
                f"TheTVDB login request failed: {exc}", original_exception=exc
            ) from exc

        if response.status_code >= 400:
            reason = response.reason_phrase or _error_message(response)
            logger.warning(
                "TheTVDB login rejected with status %s: %s",
                response.status_code,
                reason,
            )
            raise AuthenticationError(
                f"TheTVDB login failed with status {response.status_code}: {reason}",
                status_code=response.status_code,
            )

        token = _extract_token(response)
        if not token:
            raise AuthenticationError(
                "TheTVDB login response did not include a token",
                status_code=response.status_code,
            )
        return token


def _extract_token(response: httpx.Response) -> str | None:
    try:
        payload: Any = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    token = data.get("token")
    if isinstance(token, str) and token.strip():
        return token
    return None


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("status") or "")
    return response.text
