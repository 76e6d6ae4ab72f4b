"""httpx async transport wrapper with classified retry, backoff, and rate-limit handling."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass

import httpx

from beanup.providers.clickup.failures import FailureClass, classify_failure, is_retryable, parse_error_body

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff with jitter.

    ``max_attempts`` counts the first try. Every single sleep is capped at
    ``max_delay``; ``max_total_delay`` optionally caps the sum of sleeps for
    one request.
    """

    max_attempts: int = 5
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 0.25
    max_total_delay: float | None = None

    def delay_for(self, attempt: int, retry_after: float | None = None) -> float:
        backoff = self.base_delay * float(2**attempt)
        if retry_after is not None:
            backoff = max(backoff, retry_after)
        return min(self.max_delay, backoff + random.uniform(0.0, self.jitter))


class RetryingTransport(httpx.AsyncBaseTransport):
    """Wraps an httpx async transport with automatic retry on transient failures.

    Features:
    - Retry with exponential backoff + jitter (up to ``policy.max_attempts`` attempts)
    - Rate-limit pause on HTTP 429 or ClickUp's rate-limit ECODE (reads
      ``Retry-After``, blocks **all** concurrent requests via a shared event)
    - Retry on 5xx server errors
    - Retry on transport-level errors (connection reset, timeout, etc.)
    - Any other 4xx is returned immediately
    """

    def __init__(
        self,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        policy: RetryPolicy | None = None,
    ) -> None:
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._policy = policy or RetryPolicy()

        self._rate_limit_lock = asyncio.Lock()
        self._rate_limit_clear = asyncio.Event()
        self._rate_limit_clear.set()
        self._rate_limit_pause_until = 0.0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        last_attempt = self._policy.max_attempts - 1
        slept = 0.0
        for attempt in range(self._policy.max_attempts):
            await self._rate_limit_clear.wait()

            try:
                response = await self._transport.handle_async_request(request)
            except httpx.TransportError as exc:
                delay = self._policy.delay_for(attempt)
                if attempt >= last_attempt or not self._within_budget(slept, delay):
                    raise
                _LOG.warning("Transient ClickUp failure on %s %s: %s", request.method, request.url.path, exc)
                slept += delay
                await self._sleep(delay, attempt)
                continue

            if response.status_code < 400:
                return response

            await response.aread()
            failure = classify_failure(response.status_code, parse_error_body(response.content))
            if not is_retryable(failure) or attempt >= last_attempt:
                return response

            retry_after = self._parse_retry_after(response)
            delay = self._policy.delay_for(attempt, retry_after)
            if not self._within_budget(slept, delay):
                return response

            await response.aclose()
            slept += delay
            if failure is FailureClass.RATE_LIMITED:
                await self._apply_rate_limit_pause(delay, attempt)
            else:
                await self._sleep(delay, attempt)

        raise httpx.TransportError("Request failed after retries")  # pragma: no cover

    async def aclose(self) -> None:
        await self._transport.aclose()

    def _within_budget(self, slept: float, delay: float) -> bool:
        cap = self._policy.max_total_delay
        return cap is None or slept + delay <= cap

    # ------------------------------------------------------------------
    # Rate-limit helpers
    # ------------------------------------------------------------------

    async def _apply_rate_limit_pause(self, seconds: float, attempt: int) -> None:
        """Sleep *seconds* while holding back every other request on this transport."""
        now = time.monotonic()
        async with self._rate_limit_lock:
            until = now + max(0.0, seconds)
            if until > self._rate_limit_pause_until:
                self._rate_limit_pause_until = until
                self._rate_limit_clear.clear()

        try:
            await self._sleep(seconds, attempt)
        finally:
            # The owner of the latest pause window releases waiters, even when cancelled.
            if self._rate_limit_pause_until == until or time.monotonic() >= self._rate_limit_pause_until:
                self._rate_limit_clear.set()

    @staticmethod
    def _parse_retry_after(response: httpx.Response) -> float | None:
        raw = response.headers.get("Retry-After")
        if raw is None:
            return None
        try:
            return max(0.0, float(raw))
        except ValueError:
            return None

    @staticmethod
    async def _sleep(seconds: float, attempt: int) -> None:
        _LOG.warning("Retrying ClickUp request in %.1fs (attempt %d)", seconds, attempt + 2)
        await asyncio.sleep(seconds)
