# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DocSignals: machine-readability signals for web pages.

Fetches a page several times and reports:
- structure: how consistent the DOM shape is across repeated fetches
- semantics: how much meaning is carried by markup rather than generic containers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

__version__ = "1.0.0"


class StructureClassification(StrEnum):
    DETERMINISTIC = "deterministic"
    MOSTLY_DETERMINISTIC = "mostly-deterministic"
    UNSTABLE = "unstable"


class SemanticClassification(StrEnum):
    EXPLICIT = "explicit"
    PARTIAL = "partial"
    OPAQUE = "opaque"


@dataclass(frozen=True, slots=True)
class NormalizedNode:
    """Structural fingerprint of one element.

    ``child_tags`` holds every retained descendant (not only direct children)
    in pre-order, so two nodes compare with a single sequence equality.
    """

    tag: str
    child_tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class StructureResult:
    """Consistency of one URL's DOM across repeated fetches."""

    classification: StructureClassification
    difference_count: int
    max_depth: int = 0
    top_level_sections: int = 0
    custom_elements: int = 0


@dataclass(frozen=True, slots=True)
class HeadingStats:
    h1_count: int = 0
    has_skips: bool = False


@dataclass(frozen=True, slots=True)
class LandmarkStats:
    found: frozenset[str] = frozenset()
    coverage_percent: int = 0  # 0-100


@dataclass(frozen=True, slots=True)
class ImageStats:
    total: int = 0
    with_alt: int = 0
    empty_alt: int = 0  # alt="" marks the image as decorative
    missing_alt: int = 0
    in_figure: int = 0


@dataclass(frozen=True, slots=True)
class ListStats:
    total: int = 0


@dataclass(frozen=True, slots=True)
class TableStats:
    total: int = 0
    with_headers: int = 0


@dataclass(frozen=True, slots=True)
class TimeStats:
    total: int = 0
    with_datetime: int = 0


@dataclass(frozen=True, slots=True)
class SemanticResult:
    """Markup-quality signals for a single document."""

    classification: SemanticClassification
    headings: HeadingStats = field(default_factory=HeadingStats)
    landmarks: LandmarkStats = field(default_factory=LandmarkStats)
    div_ratio: float = 0.0  # 0.0-1.0
    link_issues: int = 0
    images: ImageStats = field(default_factory=ImageStats)
    lists: ListStats = field(default_factory=ListStats)
    tables: TableStats = field(default_factory=TableStats)
    time_elements: TimeStats = field(default_factory=TimeStats)
    lang_attribute: bool = False


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """One complete run: structure over all samples, semantics over the first."""

    url: str
    structure: StructureResult
    semantics: SemanticResult


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """A stored analysis, as kept by the bounded history log."""

    url: str
    timestamp: str  # ISO-8601, UTC
    result: AnalysisResult
