# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""HTML fetching: direct request with relay fallback, plus the paced sample loop.

- Bounded timeout per request (``Settings.timeout``)
- Non-2xx -> FetchError("HTTP <status>"), timeout -> FetchTimeoutError
- Redirects into local/private addresses -> FetchError
- Direct request blocked at the transport level -> relay when configured
- No automatic retries: one failure fails the run
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import httpx

from .config import MAX_REDIRECTS, Settings
from .errors import FetchBlockedError, FetchError, FetchTimeoutError, RelayError
from .url_validation import PRIVATE_ADDRESS, blocked_reason

logger = logging.getLogger(__name__)

ACCEPT_HTML = "text/html"

REDIRECT_BLOCKED = "Redirect to a local/private address blocked"

ProgressCallback = Callable[[int, int], None]


async def _check_redirect(response: httpx.Response) -> None:
    """Response hook: refuse to follow a redirect into a local/private address."""
    if not response.has_redirect_location:
        return
    try:
        target = response.url.join(response.headers["location"])
    except httpx.InvalidURL:
        return  # httpx raises its own error when building the redirect
    if blocked_reason(str(target)) == PRIVATE_ADDRESS:
        logger.info("Blocked redirect from %s to %s", response.url, target)
        raise FetchError(REDIRECT_BLOCKED)


def create_client(settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Shared client for one run. Callers own it (``async with``).

    Every redirect hop is checked against the same rules as the initial URL.
    """
    return httpx.AsyncClient(
        headers={"User-Agent": settings.user_agent, "Accept": ACCEPT_HTML},
        timeout=httpx.Timeout(settings.timeout),
        follow_redirects=True,
        max_redirects=MAX_REDIRECTS,
        event_hooks={"response": [_check_redirect]},
        transport=transport,
    )


async def fetch_html(url: str, *, client: httpx.AsyncClient, settings: Settings) -> str:
    """Fetch *url* and return its body text.

    Raises:
        FetchTimeoutError: no answer within ``settings.timeout``.
        FetchError: non-2xx status, too many redirects, or a redirect into a private address.
        FetchBlockedError: the request was blocked and no relay is configured.
        RelayError: the relay fallback failed.
    """
    try:
        response = await client.get(url, timeout=settings.timeout)
    except httpx.TimeoutException as e:
        raise FetchTimeoutError("Request timed out") from e
    except httpx.TooManyRedirects as e:
        raise FetchError("Too many redirects") from e
    except httpx.TransportError as e:
        if settings.relay_url:
            logger.info("Direct fetch of %s blocked (%s), retrying via relay", url, type(e).__name__)
            return await fetch_via_relay(url, client=client, settings=settings)
        raise FetchBlockedError(
            f"Request blocked ({type(e).__name__}). The target could not be reached directly; "
            "configure a relay URL to fetch through the relay."
        ) from e

    if not response.is_success:
        raise FetchError(f"HTTP {response.status_code}", status_code=response.status_code)
    return response.text


async def fetch_via_relay(url: str, *, client: httpx.AsyncClient, settings: Settings) -> str:
    """Fetch *url* through the relay at ``settings.relay_url``."""
    if not settings.relay_url:
        raise RelayError("No relay URL configured")
    try:
        response = await client.get(settings.relay_url, params={"url": url}, timeout=settings.timeout)
    except httpx.TimeoutException as e:
        raise FetchTimeoutError("Request timed out") from e
    except httpx.TransportError as e:
        raise RelayError("Unable to reach relay server") from e

    if not response.is_success:
        detail = response.text.strip()
        raise RelayError(detail or f"Relay error: {response.status_code}", status_code=response.status_code)
    return response.text


async def collect_samples(
    url: str,
    count: int,
    *,
    client: httpx.AsyncClient,
    settings: Settings,
    on_progress: ProgressCallback | None = None,
) -> list[str]:
    """Fetch *url* ``count`` times, sequentially, pausing ``settings.fetch_delay`` between fetches.

    Any failure propagates immediately; samples gathered so far are discarded.
    """
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")

    samples: list[str] = []
    for i in range(count):
        if on_progress is not None:
            on_progress(i, count)
        if i > 0 and settings.fetch_delay > 0:
            await asyncio.sleep(settings.fetch_delay)
        samples.append(await fetch_html(url, client=client, settings=settings))
        logger.debug("sample %d/%d fetched: %d chars", i + 1, count, len(samples[-1]))
    return samples
