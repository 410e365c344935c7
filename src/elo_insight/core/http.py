"""
HTTP plumbing shared by the backend client and the upstream dispatcher.

BaseApiClient wraps one lazily created httpx.AsyncClient and adds:
- client-side pacing (RateLimiter)
- retries with exponential backoff for 5xx and connection failures,
  only for idempotent methods; a POST is sent exactly once
- 429 handling driven by Retry-After (delta-seconds or HTTP-date)
- decoding: empty body -> None, non-JSON body -> INVALID_RESPONSE

Subclasses only add domain methods on top of _get/_post/_delete:

    class StatsProxy(BaseApiClient):
        async def cs2(self, steam_id: str) -> Any:
            return await self._get("/api/stats/cs2", params={"steam_id": steam_id})

    async with StatsProxy(base_url="http://localhost:8080") as proxy:
        raw = await proxy.cs2("7656...")
"""

import asyncio
import logging
import math
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Safe to resend after an ambiguous failure (RFC 9110 9.2.2).
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})

DEFAULT_RETRY_AFTER = 60
MAX_RATE_LIMIT_WAIT = 30


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ExternalAPIError(Exception):
    """A remote call failed; ``status_code`` is 500 for connection failures."""

    def __init__(
        self,
        message: str,
        code: str = "EXTERNAL_API_ERROR",
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    @property
    def is_transient(self) -> bool:
        """Server-side or connectivity failure that may succeed later."""
        return self.status_code >= 500 or self.status_code == 429


class RateLimitError(ExternalAPIError):
    """Remote side kept answering 429."""

    def __init__(self, message: str, retry_after: int = DEFAULT_RETRY_AFTER):
        super().__init__(message, code="RATE_LIMITED", status_code=429)
        self.retry_after = retry_after


def parse_retry_after(value: str | None, default: int = DEFAULT_RETRY_AFTER) -> int:
    """
    Seconds to wait according to a Retry-After header.

    Accepts both forms RFC 9110 allows (``120`` or an HTTP-date).  Anything
    unparseable yields ``default``; a date in the past yields 0.
    """
    if not value:
        return default
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return default
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delay = (when - datetime.now(timezone.utc)).total_seconds()
    return max(0, math.ceil(delay))


# ---------------------------------------------------------------------------
# Pacing
# ---------------------------------------------------------------------------

class RateLimiter:
    """Spaces consecutive requests at least 60/requests_per_minute seconds apart."""

    def __init__(self, requests_per_minute: int = 600):
        self.interval = 60.0 / requests_per_minute
        self._next_slot = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            wait = self._next_slot - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)
            self._next_slot = time.monotonic() + self.interval


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class BaseApiClient:
    """
    Async JSON client with pacing, retries and error translation.

    Works as an async context manager or lazily (the httpx client is built
    on first use; call ``close()`` when done).  Pass
    ``transport=httpx.MockTransport(handler)`` to keep tests off the network.
    """

    def __init__(
        self,
        *,
        base_url: str,
        headers: dict[str, str] | None = None,
        requests_per_minute: int = 600,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._headers = dict(headers or {})
        self._rate_limiter = RateLimiter(requests_per_minute)
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BaseApiClient":
        self._client = self._build_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = self._build_client()
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    # -- Verbs ---------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def _post(self, path: str, json: dict[str, Any] | None = None) -> Any:
        """POST once; a lost response must not create a second resource."""
        return await self._request("POST", path, json=json)

    async def _delete(self, path: str) -> Any:
        return await self._request("DELETE", path)

    # -- Core ----------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        retry: bool | None = None,
    ) -> Any:
        """
        Send a request and decode its JSON body.

        Args:
            retry: Allow resending after 5xx/429/connection failures.
                Defaults to True only for idempotent methods.

        Returns:
            Decoded JSON, or None for an empty body.

        Raises:
            RateLimitError: 429 on the last allowed attempt
            ExternalAPIError: any other failure, including a non-JSON body
                (code INVALID_RESPONSE)
        """
        method = method.upper()
        if retry is None:
            retry = method in IDEMPOTENT_METHODS
        attempts = self._max_retries if retry else 1
        last_error: ExternalAPIError | None = None

        for attempt in range(1, attempts + 1):
            final = attempt == attempts
            await self._rate_limiter.acquire()
            try:
                response = await self.client.request(method, path, params=params, json=json)
            except httpx.RequestError as e:
                last_error = ExternalAPIError(f"{method} {path} failed: {e}")
                if not final:
                    await self._backoff(attempt, last_error)
                continue

            status = response.status_code
            if status == 429:
                retry_after = parse_retry_after(response.headers.get("retry-after"))
                if final:
                    raise RateLimitError(
                        f"Rate limited on {path}; retry in {retry_after}s",
                        retry_after=retry_after,
                    )
                wait = min(retry_after, MAX_RATE_LIMIT_WAIT)
                logger.warning("Rate limited on %s, waiting %ss (attempt %d)", path, wait, attempt)
                await asyncio.sleep(wait)
                continue

            if response.is_error:
                last_error = ExternalAPIError(f"HTTP {status}: {response.text[:200]}", status_code=status)
                if status < 500 or final:
                    raise last_error
                await self._backoff(attempt, last_error)
                continue

            return self._decode(response, path)

        raise last_error or ExternalAPIError(f"{method} {path} failed after {attempts} attempts")

    async def _backoff(self, attempt: int, error: ExternalAPIError) -> None:
        wait = 2 ** (attempt - 1)
        logger.warning("%s; retrying in %ss (attempt %d)", error.message, wait, attempt)
        await asyncio.sleep(wait)

    @staticmethod
    def _decode(response: httpx.Response, path: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ExternalAPIError(
                f"Invalid JSON from {path}: {e}",
                code="INVALID_RESPONSE",
                status_code=response.status_code,
            ) from e
