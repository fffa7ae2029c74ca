# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Semantic markup analysis for a single HTML document.

Each signal is computed independently over the retained elements under
<body> (same walk as the normalizer), then combined into one
explicit / partial / opaque classification using the shared bands in
``thresholds``.

Signals:
  headings       h1 count + skipped levels (h1 -> h3)
  landmarks      region tags present + % of elements inside one
  div_ratio      div/span share of all elements
  link_issues    links with empty or generic text ("click here")
  images         alt coverage, decorative alt="", figure context
  lists/tables   list containers, tables with header cells
  time_elements  <time> with a machine-readable datetime
  lang           <html lang> declared
"""

from __future__ import annotations

import logging
import math
import re

import lxml.html

from . import (
    HeadingStats,
    ImageStats,
    LandmarkStats,
    ListStats,
    SemanticClassification,
    SemanticResult,
    TableStats,
    TimeStats,
)
from .normalizer import find_body, iter_elements, parse_document, tag_name
from .thresholds import Severity, div_ratio_severity, heading_severity, landmark_severity

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

# Landmark tag -> implicit ARIA role
LANDMARK_TAGS: dict[str, str] = {
    "main": "main",
    "nav": "navigation",
    "header": "banner",
    "footer": "contentinfo",
    "aside": "complementary",
    "section": "region",
}

# Explicit role attribute -> equivalent landmark tag
_ROLE_TO_TAG: dict[str, str] = {role: tag for tag, role in LANDMARK_TAGS.items()}

GENERIC_CONTAINER_TAGS: frozenset[str] = frozenset({"div", "span"})

HEADING_LEVELS: dict[str, int] = {f"h{n}": n for n in range(1, 7)}

LIST_TAGS: frozenset[str] = frozenset({"ul", "ol", "dl"})

GENERIC_LINK_TEXT: frozenset[str] = frozenset(
    {
        "click here",
        "click",
        "here",
        "read more",
        "more",
        "learn more",
        "link",
        "this",
        "go",
        "continue",
    }
)

_LINK_TRIM_CHARS = " .,:;!?…→»›>«‹<-–—\"'"

# ---------------------------------------------------------------------------
# <time datetime> validation (HTML "valid date/time/duration string")
# ---------------------------------------------------------------------------

_YEAR = r"\d{4,}"
_MONTH = r"(?:0[1-9]|1[0-2])"
_DAY = r"(?:0[1-9]|[12]\d|3[01])"
_TIME = r"(?:[01]\d|2[0-3]):[0-5]\d(?::[0-5]\d(?:\.\d{1,3})?)?"
_TZ = r"(?:Z|[+-](?:[01]\d|2[0-3]):?[0-5]\d)"
_DATE = rf"{_YEAR}-{_MONTH}-{_DAY}"
_DURATION = r"P(?=\d|T\d)(?:\d+D)?(?:T(?=\d)(?:\d+H)?(?:\d+M)?(?:\d+(?:\.\d{1,3})?S)?)?"

_DATETIME_RE = re.compile(
    "|".join(
        (
            rf"{_DATE}(?:[T ]{_TIME}{_TZ}?)?",  # date, local or global datetime
            rf"{_YEAR}-{_MONTH}",  # month
            _YEAR,  # year
            rf"{_YEAR}-W(?:0[1-9]|[1-4]\d|5[0-3])",  # week
            rf"(?:--)?{_MONTH}-{_DAY}",  # yearless date
            _TIME,  # time
            _TZ,  # timezone offset
            _DURATION,
        )
    ),
    re.IGNORECASE,
)


def is_machine_datetime(value: str | None) -> bool:
    """True if *value* is a machine-readable HTML date, time, or duration."""
    if value is None:
        return False
    return _DATETIME_RE.fullmatch(value.strip()) is not None


# ---------------------------------------------------------------------------
# Per-element helpers
# ---------------------------------------------------------------------------


def landmark_tag(el: lxml.html.HtmlElement) -> str | None:
    """Landmark tag for *el*: its own tag, or the tag its ``role`` stands for."""
    tag = tag_name(el)
    if tag in LANDMARK_TAGS:
        return tag
    role = (el.get("role") or "").strip().lower()
    if role:
        return _ROLE_TO_TAG.get(role.split()[0])
    return None


def is_generic_link_text(text: str) -> bool:
    """Empty, whitespace-only, or a denylisted phrase (case-insensitive)."""
    normalized = " ".join(text.split()).strip(_LINK_TRIM_CHARS).casefold()
    return not normalized or normalized in GENERIC_LINK_TEXT


def _in_figure(el: lxml.html.HtmlElement) -> bool:
    return any(isinstance(a.tag, str) and a.tag.lower() == "figure" for a in el.iterancestors())


def _has_header_cell(table: lxml.html.HtmlElement) -> bool:
    return any(isinstance(el.tag, str) and el.tag.lower() == "th" for el in table.iterdescendants())


def _percent(part: int, whole: int) -> int:
    """Round-half-up percentage clamped to 0-100."""
    if whole <= 0:
        return 0
    return max(0, min(100, math.floor(part * 100 / whole + 0.5)))


def _has_lang(doc: lxml.html.HtmlElement | None) -> bool:
    if doc is None:
        return False
    for attr in ("lang", "xml:lang"):
        if (doc.get(attr) or "").strip():
            return True
    return False


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify_semantics(
    coverage_percent: float,
    div_ratio: float,
    h1_count: int,
    has_skips: bool,
) -> SemanticClassification:
    """Aggregate label from the shared severity bands.

    explicit: landmarks, generic-container ratio and headings all good.
    opaque:   landmark coverage or generic-container ratio is an issue.
    """
    landmarks = landmark_severity(coverage_percent)
    divs = div_ratio_severity(div_ratio)
    if landmarks is Severity.GOOD and divs is Severity.GOOD and heading_severity(h1_count, has_skips) is Severity.GOOD:
        return SemanticClassification.EXPLICIT
    if landmarks is Severity.ISSUE or divs is Severity.ISSUE:
        return SemanticClassification.OPAQUE
    return SemanticClassification.PARTIAL


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


def analyze_semantics(html: str) -> SemanticResult:
    """Score one document against the markup-quality heuristics.

    Pure function of *html*; never raises on malformed markup. Missing
    structure simply yields zero counts (no body -> 0% coverage, ratio 0).
    """
    doc = parse_document(html)
    body = find_body(doc)
    elements = list(iter_elements(body)) if body is not None else []

    total = len(elements)
    generic = 0
    covered = 0
    found: set[str] = set()
    landmark_depth: int | None = None  # depth of the landmark we are inside
    h1_count = 0
    has_skips = False
    previous_level: int | None = None
    link_issues = 0
    images = {"total": 0, "with_alt": 0, "empty_alt": 0, "missing_alt": 0, "in_figure": 0}
    lists = 0
    tables = 0
    tables_with_headers = 0
    times = 0
    times_with_datetime = 0

    for el, depth in elements:
        tag = tag_name(el)

        # Landmark coverage: pre-order, so leaving a landmark subtree means depth <= its depth
        if landmark_depth is not None and depth <= landmark_depth:
            landmark_depth = None
        landmark = landmark_tag(el)
        if landmark is not None:
            found.add(landmark)
            if landmark_depth is None:
                landmark_depth = depth
        if landmark_depth is not None:
            covered += 1

        if tag in GENERIC_CONTAINER_TAGS:
            generic += 1

        level = HEADING_LEVELS.get(tag)
        if level is not None:
            if level == 1:
                h1_count += 1
            if previous_level is not None and level - previous_level > 1:
                has_skips = True
            previous_level = level

        if tag == "a" and el.get("href") is not None:
            if is_generic_link_text(el.text_content()):
                link_issues += 1
        elif tag == "img":
            images["total"] += 1
            alt = el.get("alt")
            if alt is None:
                images["missing_alt"] += 1
            elif alt.strip():
                images["with_alt"] += 1
            else:
                images["empty_alt"] += 1
            if _in_figure(el):
                images["in_figure"] += 1
        elif tag in LIST_TAGS:
            lists += 1
        elif tag == "table":
            tables += 1
            if _has_header_cell(el):
                tables_with_headers += 1
        elif tag == "time":
            times += 1
            if is_machine_datetime(el.get("datetime")):
                times_with_datetime += 1

    coverage = _percent(covered, total) if found else 0
    div_ratio = min(1.0, max(0.0, generic / total)) if total else 0.0

    result = SemanticResult(
        classification=classify_semantics(coverage, div_ratio, h1_count, has_skips),
        headings=HeadingStats(h1_count=h1_count, has_skips=has_skips),
        landmarks=LandmarkStats(found=frozenset(found), coverage_percent=coverage),
        div_ratio=div_ratio,
        link_issues=link_issues,
        images=ImageStats(**images),
        lists=ListStats(total=lists),
        tables=TableStats(total=tables, with_headers=tables_with_headers),
        time_elements=TimeStats(total=times, with_datetime=times_with_datetime),
        lang_attribute=_has_lang(doc),
    )
    logger.debug(
        "semantics analyzed: elements=%d coverage=%d div_ratio=%.2f classification=%s",
        total,
        coverage,
        div_ratio,
        result.classification,
    )
    return result
