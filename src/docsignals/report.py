# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Human-readable report for one analysis, plus the history comparison table.

Every good / warning / issue judgment goes through ``thresholds``, so the
signal markers, interpretations, and insights agree with the aggregate
semantic classification.

Output sections (``render_text``):
    summary cards -> structural signals -> semantic signals
    -> interpretation -> structural insights
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlparse

from . import (
    AnalysisResult,
    HistoryEntry,
    SemanticClassification,
    SemanticResult,
    StructureClassification,
    StructureResult,
)
from .thresholds import (
    DOM_DEPTH,
    TOP_LEVEL_SECTIONS,
    Severity,
    div_ratio_severity,
    heading_severity,
    landmark_severity,
    link_severity,
    structure_severity,
)

MARKERS: dict[Severity, str] = {
    Severity.GOOD: "✓",
    Severity.WARNING: "○",
    Severity.ISSUE: "–",
}


@dataclass(frozen=True, slots=True)
class Signal:
    severity: Severity
    text: str


@dataclass(frozen=True, slots=True)
class SummaryCard:
    dimension: str
    classification: str
    description: str
    tooltip: str


@dataclass(frozen=True, slots=True)
class Interpretation:
    category: str
    finding: str
    implication: str
    baseline: str = ""  # typical context, e.g. "Typical for SPAs"


@dataclass(frozen=True, slots=True)
class Insight:
    title: str
    description: str
    category: str  # structure | semantics | accessibility


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def _percent(ratio: float) -> int:
    return int(ratio * 100 + 0.5)


# ---------------------------------------------------------------------------
# Summary cards
# ---------------------------------------------------------------------------

_STRUCTURE_TEXT: dict[StructureClassification, tuple[str, str]] = {
    StructureClassification.DETERMINISTIC: (
        "Document structure is consistent across requests.",
        "Deterministic means repeated requests produce the same DOM structure.",
    ),
    StructureClassification.MOSTLY_DETERMINISTIC: (
        "Minor structural variations detected between requests.",
        "Mostly-deterministic means the structure is largely stable with minor variations.",
    ),
    StructureClassification.UNSTABLE: (
        "Structure varies significantly between requests.",
        "Unstable means the DOM structure changes between requests.",
    ),
}

_SEMANTIC_TEXT: dict[SemanticClassification, tuple[str, str]] = {
    SemanticClassification.EXPLICIT: (
        "Semantic meaning is conveyed through HTML elements.",
        "Explicit means meaning is encoded directly in HTML elements and attributes.",
    ),
    SemanticClassification.PARTIAL: (
        "Some semantic structure present, with gaps.",
        "Partial means some meaning is encoded in markup, but gaps exist.",
    ),
    SemanticClassification.OPAQUE: (
        "Meaning relies on visual presentation or inference.",
        "Opaque means machines must infer meaning from presentation or context.",
    ),
}


def summary_cards(result: AnalysisResult) -> list[SummaryCard]:
    """One card per dimension: structure, then semantics."""
    s_desc, s_tip = _STRUCTURE_TEXT[result.structure.classification]
    m_desc, m_tip = _SEMANTIC_TEXT[result.semantics.classification]
    return [
        SummaryCard("Structure", str(result.structure.classification), s_desc, s_tip),
        SummaryCard("Semantics", str(result.semantics.classification), m_desc, m_tip),
    ]


# ---------------------------------------------------------------------------
# Signal panels
# ---------------------------------------------------------------------------


def structural_signals(structure: StructureResult, fetch_count: int) -> list[Signal]:
    signals: list[Signal] = []
    if structure.difference_count == 0:
        signals.append(Signal(Severity.GOOD, f"Identical structure across {_plural(fetch_count, 'fetch')}"))
    else:
        signals.append(Signal(Severity.WARNING, f"{structure.difference_count} structural difference(s) detected"))

    severity = structure_severity(structure.difference_count)
    text = {
        Severity.GOOD: "DOM tree is deterministic",
        Severity.WARNING: "Minor variations in DOM structure",
        Severity.ISSUE: "Structure changes between requests",
    }[severity]
    signals.append(Signal(severity, text))
    return signals


def semantic_signals(semantics: SemanticResult) -> list[Signal]:
    signals: list[Signal] = []

    h1 = semantics.headings.h1_count
    skips = semantics.headings.has_skips
    severity = heading_severity(h1, skips)
    if h1 == 1:
        text = "Single h1, no skipped heading levels" if not skips else "Single h1, but heading levels are skipped"
    elif h1 == 0:
        text = "No h1 element found"
    else:
        text = f"{h1} h1 elements (expected 1)"
    signals.append(Signal(severity, text))

    coverage = semantics.landmarks.coverage_percent
    severity = landmark_severity(coverage)
    if severity is Severity.ISSUE:
        signals.append(Signal(severity, f"Only {coverage}% content in landmarks"))
    else:
        signals.append(Signal(severity, f"{coverage}% content in landmark regions"))

    div_pct = _percent(semantics.div_ratio)
    severity = div_ratio_severity(semantics.div_ratio)
    suffix = " (heavy on generic elements)" if severity is Severity.ISSUE else ""
    signals.append(Signal(severity, f"{div_pct}% div/span ratio{suffix}"))

    severity = link_severity(semantics.link_issues)
    if severity is Severity.GOOD:
        signals.append(Signal(severity, "All links have descriptive text"))
    else:
        signals.append(Signal(severity, f"{semantics.link_issues} link(s) with generic or missing text"))

    return signals


# ---------------------------------------------------------------------------
# Interpretation
# ---------------------------------------------------------------------------


def _structure_interpretations(structure: StructureResult, fetch_count: int) -> list[Interpretation]:
    out: list[Interpretation] = []
    category = "Structure Consistency"
    if structure.classification is StructureClassification.DETERMINISTIC:
        if fetch_count == 1:
            out.append(
                Interpretation(
                    category,
                    "Single fetch completed",
                    "Baseline captured. Run multiple fetches to verify consistency.",
                )
            )
        else:
            out.append(
                Interpretation(
                    category,
                    f"Identical across {fetch_count} fetches",
                    "The page delivers the same content on each visit, making it easy to cache and index.",
                )
            )
    elif structure.classification is StructureClassification.MOSTLY_DETERMINISTIC:
        out.append(
            Interpretation(
                category,
                f"{structure.difference_count} minor variation(s)",
                "The page is mostly stable with small differences between visits.",
            )
        )
    else:
        out.append(
            Interpretation(
                category,
                f"{structure.difference_count} structural difference(s)",
                "Content changes between visits, which can make parsing and caching less reliable.",
                baseline="Typical for SPAs and dynamic content",
            )
        )

    depth = DOM_DEPTH.classify(structure.max_depth)
    if depth is Severity.ISSUE:
        out.append(
            Interpretation(
                "Structure Depth",
                f"{structure.max_depth} levels deep",
                "Deep nesting can slow down traversal and make context harder to infer.",
            )
        )
    elif depth is Severity.WARNING:
        out.append(
            Interpretation(
                "Structure Depth",
                f"{structure.max_depth} levels deep",
                "Moderate nesting depth, typical for most pages.",
            )
        )

    sections = structure.top_level_sections
    sections_severity = TOP_LEVEL_SECTIONS.classify(sections)
    if sections_severity is Severity.GOOD:
        out.append(
            Interpretation(
                "Structure Sections",
                f"{sections} top-level sections",
                "The page is well-segmented, making it easy to identify distinct regions.",
            )
        )
    elif sections_severity is Severity.WARNING:
        out.append(
            Interpretation(
                "Structure Sections",
                f"{_plural(sections, 'top-level section')}",
                "Limited segmentation means some region boundaries need to be guessed.",
            )
        )
    else:
        out.append(
            Interpretation(
                "Structure Sections",
                "No top-level sections",
                "Without explicit sections, regions will be inferred from the content itself.",
            )
        )

    if structure.custom_elements > 0:
        out.append(
            Interpretation(
                "Structure Shadow DOM",
                _plural(structure.custom_elements, "shadow DOM host"),
                "Some content is hidden in shadow DOM and may not be visible to standard parsing.",
            )
        )
    return out


def _heading_interpretation(semantics: SemanticResult) -> Interpretation:
    h1 = semantics.headings.h1_count
    if heading_severity(h1, semantics.headings.has_skips) is Severity.GOOD:
        return Interpretation(
            "Semantic Headings",
            "1 H1, sequential hierarchy",
            "The document has a clear outline that helps machines identify the main topic.",
        )
    if h1 == 0:
        return Interpretation(
            "Semantic Headings",
            "H1 not present",
            "Machines will infer the page topic from other content instead.",
            baseline="Common for app shells and client-rendered pages",
        )
    if h1 > 1:
        return Interpretation(
            "Semantic Headings",
            f"{h1} H1 elements",
            "Multiple main headings can make the topic hierarchy less clear.",
        )
    return Interpretation(
        "Semantic Headings",
        "Heading hierarchy has gaps",
        "Skipped heading levels mean the outline needs to be reconstructed from context.",
    )


_LANDMARK_IMPLICATIONS: dict[Severity, tuple[str, str]] = {
    Severity.GOOD: (
        "Most content is in clearly defined regions, making navigation and extraction straightforward.",
        "",
    ),
    Severity.WARNING: (
        "About half the content is in semantic regions; some boundaries need to be guessed.",
        "",
    ),
    Severity.ISSUE: (
        "Most content boundaries will be inferred from context rather than markup.",
        "Common for legacy sites or framework markup",
    ),
}

_DIV_IMPLICATIONS: dict[Severity, tuple[str, str]] = {
    Severity.GOOD: ("Most elements have semantic meaning, making the structure self-describing.", ""),
    Severity.WARNING: ("A mix of semantic and generic elements; structure is partially self-describing.", ""),
    Severity.ISSUE: (
        "Most elements are generic divs, so meaning is derived from class names rather than HTML semantics.",
        "Common for component frameworks (React, Vue)",
    ),
}


def _image_interpretations(semantics: SemanticResult) -> list[Interpretation]:
    images = semantics.images
    if images.total == 0:
        return []
    out: list[Interpretation] = []
    if images.missing_alt == 0:
        out.append(
            Interpretation(
                "Image Accessibility",
                "All images have alt",
                "Every image is clearly marked as meaningful or decorative.",
            )
        )
    else:
        pct = _percent(images.missing_alt / images.total)
        out.append(
            Interpretation(
                "Image Accessibility",
                f"{_plural(images.missing_alt, 'image')} without alt ({pct}%)",
                "Some images lack alt text, so their purpose must be guessed from context.",
            )
        )
    if images.in_figure > 0:
        pct = _percent(images.in_figure / images.total)
        out.append(
            Interpretation(
                "Image Context",
                f"{images.in_figure} in figure elements ({pct}%)",
                "Images in figures can be associated with their captions automatically.",
            )
        )
    if images.empty_alt > 0 and images.with_alt > 0:
        out.append(
            Interpretation(
                "Image Classification",
                f"{images.with_alt} meaningful, {images.empty_alt} decorative",
                "Images are clearly classified, so machines know which ones carry content.",
            )
        )
    return out


def _semantic_interpretations(semantics: SemanticResult) -> list[Interpretation]:
    out = [_heading_interpretation(semantics)]

    coverage = semantics.landmarks.coverage_percent
    implication, baseline = _LANDMARK_IMPLICATIONS[landmark_severity(coverage)]
    out.append(Interpretation("Semantic Landmarks", f"{coverage}% in semantic regions", implication, baseline))

    implication, baseline = _DIV_IMPLICATIONS[div_ratio_severity(semantics.div_ratio)]
    out.append(
        Interpretation(
            "Semantic Markup",
            f"{_percent(semantics.div_ratio)}% generic containers",
            implication,
            baseline,
        )
    )

    if semantics.link_issues > 0:
        out.append(
            Interpretation(
                "Semantic Links",
                f"{semantics.link_issues} non-descriptive link(s)",
                'Some links use generic text like "click here", so their purpose must be inferred from context.',
            )
        )
    else:
        out.append(
            Interpretation(
                "Semantic Links",
                "All links descriptive",
                "All links clearly describe their destination, making navigation easy to understand.",
            )
        )

    times = semantics.time_elements
    if times.total > 0:
        if times.with_datetime == times.total:
            out.append(
                Interpretation(
                    "Semantic Time",
                    f"{_plural(times.total, 'time element')} with datetime",
                    "All timestamps are machine-readable, making date extraction reliable.",
                )
            )
        elif times.with_datetime > 0:
            out.append(
                Interpretation(
                    "Semantic Time",
                    f"{times.with_datetime}/{times.total} with datetime",
                    "Some timestamps are machine-readable; others need to be parsed from text.",
                )
            )
        else:
            out.append(
                Interpretation(
                    "Semantic Time",
                    f"{times.total} without datetime",
                    "Dates are displayed as text only, so they need to be parsed and interpreted.",
                )
            )

    if semantics.lists.total > 0:
        out.append(
            Interpretation(
                "Semantic Lists",
                _plural(semantics.lists.total, "list structure"),
                "Lists provide clear item boundaries, making enumeration straightforward.",
            )
        )

    without_headers = semantics.tables.total - semantics.tables.with_headers
    if without_headers > 0:
        out.append(
            Interpretation(
                "Semantic Tables",
                f"{_plural(without_headers, 'table')} without headers",
                "Tables without headers require column meanings to be guessed from content.",
            )
        )

    if semantics.lang_attribute:
        out.append(
            Interpretation(
                "Semantic Language",
                "Language declared",
                "The page specifies its language, enabling correct text processing.",
            )
        )
    else:
        out.append(
            Interpretation(
                "Semantic Language",
                "Language not declared",
                "The language will be detected automatically from the content.",
            )
        )

    out.extend(_image_interpretations(semantics))
    return out


def interpretations(result: AnalysisResult, fetch_count: int) -> list[Interpretation]:
    """What the measured values suggest for machine readers, in display order."""
    return [
        *_structure_interpretations(result.structure, fetch_count),
        *_semantic_interpretations(result.semantics),
    ]


# ---------------------------------------------------------------------------
# Structural insights
# ---------------------------------------------------------------------------


def insights(result: AnalysisResult) -> list[Insight]:
    structure, semantics = result.structure, result.semantics
    out: list[Insight] = []

    if structure.classification is StructureClassification.DETERMINISTIC:
        out.append(
            Insight(
                "Deterministic structure",
                "The page returns identical DOM structure across multiple fetches, "
                "providing consistent machine-readable content.",
                "structure",
            )
        )
    else:
        out.append(
            Insight(
                "Variable DOM structure detected",
                "The page structure differs between requests. "
                "This means machines may see different content representations on each visit.",
                "structure",
            )
        )

    h1 = semantics.headings.h1_count
    if h1 == 0:
        out.append(
            Insight(
                "No H1 heading present",
                "The page lacks a primary heading element. "
                "Machines cannot identify the main topic from markup alone.",
                "semantics",
            )
        )
    elif h1 > 1:
        out.append(
            Insight(
                f"{h1} H1 headings found",
                "Multiple primary headings exist. "
                "This creates ambiguity about document structure for automated systems.",
                "semantics",
            )
        )

    if semantics.headings.has_skips:
        out.append(
            Insight(
                "Heading hierarchy has gaps",
                "The document uses non-sequential heading levels (e.g., H1 -> H3). "
                "This breaks the implicit outline structure.",
                "accessibility",
            )
        )

    coverage = semantics.landmarks.coverage_percent
    if landmark_severity(coverage) is Severity.ISSUE:
        out.append(
            Insight(
                f"{coverage}% landmark coverage",
                "Most content is not within semantic regions. "
                "Machines must infer content boundaries from visual or contextual cues.",
                "semantics",
            )
        )
    elif coverage < 100:
        out.append(
            Insight(
                f"{coverage}% landmark coverage",
                "Partial use of semantic regions. "
                "Some content areas are explicitly defined, others require interpretation.",
                "semantics",
            )
        )

    if div_ratio_severity(semantics.div_ratio) is Severity.ISSUE:
        out.append(
            Insight(
                f"{_percent(semantics.div_ratio)}% generic container elements",
                "High proportion of <div> and <span> elements. "
                "Structural meaning relies on class names or visual presentation rather than markup.",
                "semantics",
            )
        )

    if semantics.link_issues > 0:
        out.append(
            Insight(
                f"{semantics.link_issues} non-descriptive link(s)",
                'Some links use generic text ("click here", "read more"). '
                "Link purpose must be inferred from surrounding context.",
                "accessibility",
            )
        )
    return out


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _signal_lines(title: str, signals: list[Signal]) -> list[str]:
    return [title, *(f"  {MARKERS[s.severity]} {s.text}" for s in signals)]


def render_text(result: AnalysisResult, fetch_count: int) -> str:
    """Full plain-text report for terminal output."""
    lines = [f"DocSignals report: {result.url}", ""]

    for card in summary_cards(result):
        lines.append(f"{card.dimension}: {card.classification}")
        lines.append(f"  {card.description}")
    lines.append("")

    lines.extend(_signal_lines("Structural Signals", structural_signals(result.structure, fetch_count)))
    lines.append("")
    lines.extend(_signal_lines("Semantic Signals", semantic_signals(result.semantics)))
    lines.append("")

    lines.append("Interpretation")
    for item in interpretations(result, fetch_count):
        lines.append(f"  [{item.category}] {item.finding}")
        implication = item.implication
        if item.baseline:
            implication += f" ({item.baseline})"
        lines.append(f"    {implication}")
    lines.append("")

    lines.append("Structural Insights")
    for insight in insights(result):
        lines.append(f"  {insight.title} [{insight.category}]")
        lines.append(f"    {insight.description}")

    return "\n".join(lines)


def _hostname(url: str) -> str:
    return urlparse(url).hostname or url


def _local_time(timestamp: str) -> str:
    try:
        parsed = datetime.fromisoformat(timestamp)
    except ValueError:
        return timestamp
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def comparison_rows(entries: list[HistoryEntry]) -> list[list[str | int]]:
    """Metric rows for side-by-side comparison, one column per entry."""

    def row(label: str, values: list[str | int]) -> list[str | int]:
        return [label, *values]

    structures = [e.result.structure for e in entries]
    semantics = [e.result.semantics for e in entries]
    return [
        row("URL", [_hostname(e.url) for e in entries]),
        row("Timestamp", [_local_time(e.timestamp) for e in entries]),
        row("Structure", [str(s.classification) for s in structures]),
        row("Difference Count", [s.difference_count for s in structures]),
        row("Semantics", [str(m.classification) for m in semantics]),
        row("H1 Count", [m.headings.h1_count for m in semantics]),
        row("Has Heading Skips", ["Yes" if m.headings.has_skips else "No" for m in semantics]),
        row("Landmark Coverage", [f"{m.landmarks.coverage_percent}%" for m in semantics]),
        row("Div/Span Ratio", [f"{_percent(m.div_ratio)}%" for m in semantics]),
        row("Link Issues", [m.link_issues for m in semantics]),
    ]


def render_comparison(entries: list[HistoryEntry]) -> str:
    """Side-by-side table of stored analyses. Empty string for no entries."""
    if not entries:
        return ""
    from tabulate import tabulate

    headers = ["Metric", *(f"Analysis {i}" for i in range(1, len(entries) + 1))]
    return tabulate(comparison_rows(entries), headers=headers, tablefmt="simple")
