# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""AnalysisResult serialization: plain dicts and JSON.

Used by ``--json`` CLI output and by the history log. ``landmarks.found`` is
written as a sorted list so equal results always serialize identically.
"""

from __future__ import annotations

import json
from typing import Any

from . import (
    AnalysisResult,
    HeadingStats,
    HistoryEntry,
    ImageStats,
    LandmarkStats,
    ListStats,
    SemanticClassification,
    SemanticResult,
    StructureClassification,
    StructureResult,
    TableStats,
    TimeStats,
)


def structure_to_dict(structure: StructureResult) -> dict[str, Any]:
    return {
        "classification": str(structure.classification),
        "difference_count": structure.difference_count,
        "max_depth": structure.max_depth,
        "top_level_sections": structure.top_level_sections,
        "custom_elements": structure.custom_elements,
    }


def semantics_to_dict(semantics: SemanticResult) -> dict[str, Any]:
    images = semantics.images
    return {
        "classification": str(semantics.classification),
        "headings": {
            "h1_count": semantics.headings.h1_count,
            "has_skips": semantics.headings.has_skips,
        },
        "landmarks": {
            "found": sorted(semantics.landmarks.found),
            "coverage_percent": semantics.landmarks.coverage_percent,
        },
        "div_ratio": semantics.div_ratio,
        "link_issues": semantics.link_issues,
        "images": {
            "total": images.total,
            "with_alt": images.with_alt,
            "empty_alt": images.empty_alt,
            "missing_alt": images.missing_alt,
            "in_figure": images.in_figure,
        },
        "lists": {"total": semantics.lists.total},
        "tables": {
            "total": semantics.tables.total,
            "with_headers": semantics.tables.with_headers,
        },
        "time_elements": {
            "total": semantics.time_elements.total,
            "with_datetime": semantics.time_elements.with_datetime,
        },
        "lang_attribute": semantics.lang_attribute,
    }


def to_dict(result: AnalysisResult) -> dict[str, Any]:
    """Serialize an AnalysisResult to JSON-compatible primitives."""
    return {
        "url": result.url,
        "structure": structure_to_dict(result.structure),
        "semantics": semantics_to_dict(result.semantics),
    }


def to_json(result: AnalysisResult, indent: int | None = 2) -> str:
    return json.dumps(to_dict(result), ensure_ascii=False, indent=indent)


def from_dict(data: dict[str, Any]) -> AnalysisResult:
    """Rebuild an AnalysisResult from ``to_dict`` output.

    Raises:
        KeyError, TypeError, ValueError: *data* is not a serialized result.
    """
    s = data["structure"]
    m = data["semantics"]
    structure = StructureResult(
        classification=StructureClassification(s["classification"]),
        difference_count=int(s["difference_count"]),
        max_depth=int(s.get("max_depth", 0)),
        top_level_sections=int(s.get("top_level_sections", 0)),
        custom_elements=int(s.get("custom_elements", 0)),
    )
    semantics = SemanticResult(
        classification=SemanticClassification(m["classification"]),
        headings=HeadingStats(**m["headings"]),
        landmarks=LandmarkStats(
            found=frozenset(m["landmarks"]["found"]),
            coverage_percent=int(m["landmarks"]["coverage_percent"]),
        ),
        div_ratio=float(m["div_ratio"]),
        link_issues=int(m["link_issues"]),
        images=ImageStats(**m.get("images", {})),
        lists=ListStats(**m.get("lists", {})),
        tables=TableStats(**m.get("tables", {})),
        time_elements=TimeStats(**m.get("time_elements", {})),
        lang_attribute=bool(m.get("lang_attribute", False)),
    )
    return AnalysisResult(url=str(data["url"]), structure=structure, semantics=semantics)


def from_json(text: str) -> AnalysisResult:
    return from_dict(json.loads(text))


def entry_to_dict(entry: HistoryEntry) -> dict[str, Any]:
    return {"url": entry.url, "timestamp": entry.timestamp, "result": to_dict(entry.result)}


def entry_from_dict(data: dict[str, Any]) -> HistoryEntry:
    return HistoryEntry(url=str(data["url"]), timestamp=str(data["timestamp"]), result=from_dict(data["result"]))
