"""Backoff policy for feed connector requests."""

from __future__ import annotations

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)

TRANSIENT_STATUS = frozenset({408, 429, 500, 502, 503, 504})
TRANSIENT_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    ConnectionError,
    TimeoutError,
)


def _backoff(attempt: int, base_delay: float, max_delay: float) -> float:
    return min(base_delay * 2**attempt, max_delay)


def _server_hint(response: httpx.Response) -> float | None:
    """Seconds requested by a numeric Retry-After header, if any."""
    value = response.headers.get("retry-after", "")
    try:
        return float(value)
    except ValueError:
        return None


def retry_delay(exc: BaseException, attempt: int, base_delay: float, max_delay: float) -> float | None:
    """Seconds to wait before retrying after ``exc``, or None if it is final."""
    if isinstance(exc, TRANSIENT_ERRORS):
        return _backoff(attempt, base_delay, max_delay)
    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code in TRANSIENT_STATUS:
        hinted = _server_hint(exc.response)
        if hinted is not None:
            return min(hinted, max_delay)
        return _backoff(attempt, base_delay, max_delay)
    return None


async def retry_async(
    fn,
    *args,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    **kwargs,
):
    """Await ``fn(*args, **kwargs)``, retrying transient failures.

    Network errors, timeouts, HTTP 408/429 and 5xx are retried up to
    ``max_retries`` times with exponential backoff (a Retry-After header
    takes precedence). Everything else propagates at once.
    """
    attempt = 0
    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as exc:
            delay = retry_delay(exc, attempt, base_delay, max_delay)
            if delay is None or attempt >= max_retries:
                raise
            attempt += 1
            logger.warning(
                "Attempt %d/%d failed (%s: %s), retrying in %.1fs",
                attempt, max_retries, type(exc).__name__, exc, delay,
            )
        await asyncio.sleep(delay)
