"""
Shared HTTP client infrastructure for all upstream integrations.

Provides BaseApiClient with rate limiting, retries, a hard per-call timeout
and error mapping. Used by the YouTube, Twitch and PUBG clients.

Usage:
    class MyClient(BaseApiClient):
        BASE_URL = "https://api.example.com"

        def __init__(self, api_key: str):
            super().__init__(
                headers={"Authorization": f"Bearer {api_key}"},
                requests_per_minute=60,
            )

        async def get_data(self) -> dict:
            return await self._get("/data")
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


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ExternalAPIError(Exception):
    """Base exception for upstream API errors."""

    def __init__(
        self,
        message: str,
        code: str = "EXTERNAL_API_ERROR",
        status_code: int = 502,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class UpstreamNotFoundError(ExternalAPIError):
    """The upstream answered 404: the requested resource does not exist."""

    def __init__(self, message: str):
        super().__init__(message, code="UPSTREAM_NOT_FOUND", status_code=404)


class RateLimitError(ExternalAPIError):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, message: str, retry_after: int = 60):
        super().__init__(message, code="RATE_LIMITED", status_code=429)
        self.retry_after = retry_after


class NotConfiguredError(ExternalAPIError):
    """Client is missing the credentials it needs."""

    def __init__(self, service: str):
        super().__init__(
            f"{service} is not configured",
            code="SERVICE_UNAVAILABLE",
            status_code=503,
        )
        self.service = service


def parse_retry_after(value: str | None, default: int = 60, now: datetime | None = None) -> int:
    """
    Seconds to wait according to a ``Retry-After`` header.

    Accepts delta-seconds or an HTTP-date; anything unparseable yields
    ``default``. Dates in the past yield 0.
    """
    value = (value or "").strip()
    if not value:
        return default
    if value.isdigit():
        return int(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return default
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = (when - (now or datetime.now(tz=timezone.utc))).total_seconds()
    return max(0, math.ceil(delta))


# ---------------------------------------------------------------------------
# Rate limiter
# ---------------------------------------------------------------------------

class RateLimiter:
    """Simple token bucket rate limiter for async API calls."""

    def __init__(self, requests_per_minute: int = 600):
        self.delay = 60.0 / requests_per_minute
        self._last_request = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until we can make a request."""
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request
            if elapsed < self.delay:
                await asyncio.sleep(self.delay - elapsed)
            self._last_request = time.monotonic()


# ---------------------------------------------------------------------------
# Base client
# ---------------------------------------------------------------------------

class BaseApiClient:
    """
    Async HTTP client base with rate limiting and retries.

    Subclasses set BASE_URL, configure auth, and add domain-specific methods.
    Use as an async context manager:

        async with MyClient(api_key="...") as client:
            data = await client._get("/endpoint")

    Or with lazy initialisation (for long-lived services):

        client = MyClient(api_key="...")
        data = await client._get("/endpoint")  # client auto-creates on first use
        await client.close()

    ``call_timeout`` bounds a whole call, retries and rate-limit waits
    included; ``timeout`` is the per-attempt httpx timeout.
    """

    BASE_URL: str = ""
    SERVICE_NAME: str = "upstream"

    def __init__(
        self,
        *,
        base_url: str | None = None,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        requests_per_minute: int = 600,
        timeout: float = 10.0,
        call_timeout: float | None = None,
        max_retries: int = 3,
        follow_redirects: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._default_headers = headers or {}
        self._default_params = params or {}
        self._rate_limiter = RateLimiter(requests_per_minute)
        self._timeout = timeout
        self._call_timeout = call_timeout or timeout
        self._max_retries = max_retries
        self._follow_redirects = follow_redirects
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    # -- Lifecycle -----------------------------------------------------------

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._default_headers,
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=self._follow_redirects,
            transport=self._transport,
        )

    async def __aenter__(self) -> "BaseApiClient":
        self._client = self._build_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def client(self) -> httpx.AsyncClient:
        """Return the HTTP client, lazily creating it if needed."""
        if self._client is None or self._client.is_closed:
            self._client = self._build_client()
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def is_configured(self) -> bool:
        """
        Check if the client has required configuration (API keys, etc.).

        Override in subclasses that need configuration validation.
        """
        return True

    def _require_configured(self) -> None:
        if not self.is_configured():
            raise NotConfiguredError(self.SERVICE_NAME)

    # -- HTTP methods --------------------------------------------------------

    def _decode_json(self, response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON object body; anything else is an upstream error."""
        try:
            data = response.json()
        except ValueError:
            content_type = response.headers.get("content-type", "unknown")
            raise ExternalAPIError(
                f"{self.SERVICE_NAME} returned a non-JSON body ({content_type})",
                code="UPSTREAM_BAD_RESPONSE",
            )
        if not isinstance(data, dict):
            raise ExternalAPIError(
                f"{self.SERVICE_NAME} returned {type(data).__name__} instead of a JSON object",
                code="UPSTREAM_BAD_RESPONSE",
            )
        return data

    async def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make a GET request and decode the JSON body."""
        response = await self._request("GET", path, params=params, headers=headers)
        return self._decode_json(response)

    async def _get_text(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        """Make a GET request and return the raw body (RSS/XML feeds)."""
        response = await self._request("GET", path, params=params, headers=headers)
        return response.text

    async def _post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make a POST request and decode the JSON body."""
        response = await self._request("POST", path, params=params, json=json, headers=headers)
        return self._decode_json(response)

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Make an HTTP request bounded by the call timeout.

        Raises:
            UpstreamNotFoundError: If the API returns 404
            RateLimitError: If API returns 429 and retries are exhausted
            ExternalAPIError: If the request fails, times out or retries run out
        """
        try:
            return await asyncio.wait_for(
                self._request_with_retries(method, path, params, json, headers),
                timeout=self._call_timeout,
            )
        except asyncio.TimeoutError:
            raise ExternalAPIError(
                f"{self.SERVICE_NAME} call timed out after {self._call_timeout:g}s",
                code="UPSTREAM_TIMEOUT",
                status_code=504,
            )

    async def _request_with_retries(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        json: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> httpx.Response:
        merged_params = {**self._default_params, **(params or {})}
        request_headers = {**self._default_headers, **(headers or {})}
        last_error: Exception | None = None

        for attempt in range(self._max_retries):
            try:
                await self._rate_limiter.acquire()
                response = await self.client.request(
                    method=method,
                    url=path,
                    params=merged_params,
                    json=json,
                    headers=request_headers,
                )

                # Handle API rate limiting
                if response.status_code == 429:
                    retry_after = parse_retry_after(response.headers.get("retry-after"))
                    if attempt < self._max_retries - 1:
                        wait = min(retry_after, 30)
                        logger.warning(
                            f"Rate limited by {self.SERVICE_NAME}, waiting {wait}s (attempt {attempt + 1})"
                        )
                        await asyncio.sleep(wait)
                        continue
                    raise RateLimitError(
                        f"{self.SERVICE_NAME} rate limit exceeded. Try again in {retry_after} seconds.",
                        retry_after=retry_after,
                    )

                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 404:
                    raise UpstreamNotFoundError(f"{self.SERVICE_NAME}: {e.request.url.path} not found")
                last_error = ExternalAPIError(
                    f"{self.SERVICE_NAME} HTTP {status}: {e.response.text[:200]}",
                    status_code=502,
                )
                # Client errors (except 429) are not retryable
                if 400 <= status < 500:
                    raise last_error
                # Server errors: retry with backoff
                if attempt < self._max_retries - 1:
                    wait = 2 ** attempt
                    logger.warning(f"Request failed, retrying in {wait}s: {e}")
                    await asyncio.sleep(wait)

            except httpx.RequestError as e:
                last_error = ExternalAPIError(f"{self.SERVICE_NAME} request failed: {str(e)}")
                if attempt < self._max_retries - 1:
                    wait = 2 ** attempt
                    logger.warning(f"Request error, retrying in {wait}s: {e}")
                    await asyncio.sleep(wait)

        raise last_error or ExternalAPIError("Request failed after retries")
