# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Structural comparison across repeated fetches of one URL.

All-pairs equality over normalized fingerprints drives the stability
classification; shape metrics (depth, sections, custom-element hosts) come
from the first sample's element tree.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from itertools import combinations

import lxml.html

from . import NormalizedNode, StructureClassification, StructureResult
from .errors import EmptySampleError
from .normalizer import iter_elements, normalize_body, parse_body, tag_name

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Category tables
# ---------------------------------------------------------------------------

# Tag -> category for direct body children counted as top-level sections
SECTIONING_TAGS: dict[str, str] = {
    "header": "banner",
    "nav": "navigation",
    "main": "main",
    "section": "region",
    "article": "article",
    "aside": "complementary",
    "footer": "contentinfo",
}

# Attributes on <template> that attach a declarative shadow root to its parent
SHADOW_ROOT_ATTRS: tuple[str, ...] = ("shadowrootmode", "shadowroot")


def is_custom_element(tag: str) -> bool:
    """Autonomous custom elements must contain a hyphen (``<my-widget>``)."""
    return "-" in tag


def has_declarative_shadow_root(el: lxml.html.HtmlElement) -> bool:
    for child in el:
        if not isinstance(child.tag, str) or child.tag.lower() != "template":
            continue
        if any(child.get(attr) is not None for attr in SHADOW_ROOT_ATTRS):
            return True
    return False


def is_shadow_host(el: lxml.html.HtmlElement) -> bool:
    return is_custom_element(tag_name(el)) or has_declarative_shadow_root(el)


# ---------------------------------------------------------------------------
# Comparison (pure functions)
# ---------------------------------------------------------------------------


def nodes_equal(a: NormalizedNode, b: NormalizedNode) -> bool:
    """Whole-shape equality: same tag and identical descendant sequence."""
    return a.tag == b.tag and a.child_tags == b.child_tags


def classify_differences(difference_count: int) -> StructureClassification:
    if difference_count == 0:
        return StructureClassification.DETERMINISTIC
    if difference_count == 1:
        return StructureClassification.MOSTLY_DETERMINISTIC
    return StructureClassification.UNSTABLE


def count_differences(nodes: Sequence[NormalizedNode]) -> int:
    """Number of unequal unordered pairs (i < j); at most C(N, 2)."""
    return sum(1 for a, b in combinations(nodes, 2) if not nodes_equal(a, b))


def compare(nodes: Sequence[NormalizedNode]) -> StructureResult:
    """Classify already-normalized fingerprints. Shape metrics are left at zero."""
    if not nodes:
        raise EmptySampleError("compare() requires at least one normalized node")
    differences = count_differences(nodes)
    return StructureResult(
        classification=classify_differences(differences),
        difference_count=differences,
    )


# ---------------------------------------------------------------------------
# Shape metrics
# ---------------------------------------------------------------------------


def _shape_metrics(body: lxml.html.HtmlElement | None) -> tuple[int, int, int]:
    """Return ``(max_depth, top_level_sections, custom_elements)`` for one body."""
    if body is None:
        return 0, 0, 0
    max_depth = 0
    sections = 0
    hosts = 0
    for el, depth in iter_elements(body):
        max_depth = max(max_depth, depth)
        if depth == 1 and tag_name(el) in SECTIONING_TAGS:
            sections += 1
        if is_shadow_host(el):
            hosts += 1
    return max_depth, sections, hosts


def compare_structure(samples: Sequence[str]) -> StructureResult:
    """Normalize every sample, compare all pairs, and measure the first sample's shape.

    Raises:
        EmptySampleError: *samples* is empty.
    """
    if not samples:
        raise EmptySampleError("compare_structure() requires at least one HTML sample")

    bodies = [parse_body(html) for html in samples]
    nodes = [normalize_body(body) for body in bodies]
    differences = count_differences(nodes)
    max_depth, sections, hosts = _shape_metrics(bodies[0])

    result = StructureResult(
        classification=classify_differences(differences),
        difference_count=differences,
        max_depth=max_depth,
        top_level_sections=sections,
        custom_elements=hosts,
    )
    logger.debug(
        "structure compared: samples=%d differences=%d classification=%s",
        len(samples),
        differences,
        result.classification,
    )
    return result
