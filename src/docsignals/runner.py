# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""One analysis run: validate -> fetch N samples -> analyze -> remember.

A run either returns one AnalysisResult or raises one error; partial
samples are never analyzed.
"""

from __future__ import annotations

import logging

import httpx

from . import AnalysisResult
from .analysis import analyze
from .config import Settings
from .fetcher import ProgressCallback, collect_samples, create_client
from .history import AnalysisHistory
from .logging_config import run_context
from .url_validation import validate_resolved_url, validate_url

logger = logging.getLogger(__name__)


async def run_analysis(
    raw_url: str,
    settings: Settings,
    *,
    client: httpx.AsyncClient | None = None,
    history: AnalysisHistory | None = None,
    on_progress: ProgressCallback | None = None,
) -> AnalysisResult:
    """Analyze *raw_url* with ``settings.fetch_count`` paced fetches.

    Raises:
        UrlValidationError: the URL is malformed or targets a private address.
        FetchError: any fetch failed (the whole run fails).
    """
    url = await validate_resolved_url(raw_url) if settings.resolve_dns else validate_url(raw_url)

    with run_context(url=url, fetches=settings.fetch_count):
        logger.info("Analyzing %s (%d fetches)", url, settings.fetch_count)
        if client is None:
            async with create_client(settings) as owned:
                samples = await collect_samples(
                    url, settings.fetch_count, client=owned, settings=settings, on_progress=on_progress
                )
        else:
            samples = await collect_samples(
                url, settings.fetch_count, client=client, settings=settings, on_progress=on_progress
            )

        result = analyze(samples, url)
        if history is not None:
            history.save(url, result)
    return result
