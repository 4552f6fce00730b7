"""Shared async HTTP helper with exponential-backoff retry."""

import asyncio
import logging
from typing import Optional

import httpx

logger = logging.getLogger("solflow")

_RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt
_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}


async def request_with_retry(
    method: str,
    url: str,
    *,
    max_retries: int = 3,
    base_delay: float = _RETRY_BASE_DELAY,
    timeout: float = 30.0,
    **kwargs,
) -> httpx.Response:
    """Execute an HTTP request with exponential-backoff retry.

    Retries on transient server errors (502, 503, 504) and rate-limits
    (429).  Non-retryable errors are raised immediately.
    """
    last_exc: Optional[Exception] = None

    for attempt in range(max_retries):
        try:
            async with httpx.AsyncClient() as client:
                resp = await getattr(client, method)(url, timeout=timeout, **kwargs)

            if resp.status_code in _RETRYABLE_STATUS_CODES:
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    "%s %s returned %d — retry %d/%d in %.1fs",
                    method.upper(), url, resp.status_code,
                    attempt + 1, max_retries, delay,
                )
                last_exc = httpx.HTTPStatusError(
                    f"Server error '{resp.status_code}'",
                    request=resp.request,
                    response=resp,
                )
                if attempt + 1 < max_retries:
                    await asyncio.sleep(delay)
                continue

            resp.raise_for_status()
            return resp

        except httpx.TransportError as exc:
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "%s %s transport error (%s) — retry %d/%d in %.1fs",
                method.upper(), url, exc,
                attempt + 1, max_retries, delay,
            )
            last_exc = exc
            if attempt + 1 < max_retries:
                await asyncio.sleep(delay)

    # All retries exhausted, raise the last error
    raise last_exc  # type: ignore[misc]
