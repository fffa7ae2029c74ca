# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Analysis orchestrator: samples -> one immutable AnalysisResult.

Structure is compared over every sample; semantics are scored on the first
sample only (markup quality is assumed stable across fetches, only the DOM
shape is checked for repeat-fetch variance).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from . import AnalysisResult
from .errors import EmptySampleError
from .semantics import analyze_semantics
from .structure import compare_structure

logger = logging.getLogger(__name__)


def analyze(samples: Sequence[str], url: str) -> AnalysisResult:
    """Analyze fetched HTML *samples* of *url*.

    Raises:
        EmptySampleError: no samples were supplied.
    """
    if not samples:
        raise EmptySampleError("analyze() requires at least one HTML sample")

    structure = compare_structure(samples)
    semantics = analyze_semantics(samples[0])

    logger.debug(
        "analysis complete: url=%s samples=%d structure=%s semantics=%s",
        url,
        len(samples),
        structure.classification,
        semantics.classification,
    )
    return AnalysisResult(url=url, structure=structure, semantics=semantics)
