# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared severity bands for every good / warning / issue judgment.

The semantic classification (explicit / partial / opaque) and all report
sections read their cut points from this module, so the aggregate label can
never contradict the per-signal labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Severity(StrEnum):
    GOOD = "good"
    WARNING = "warning"
    ISSUE = "issue"


@dataclass(frozen=True, slots=True)
class Band:
    """Two cut points splitting a metric into good / warning / issue.

    higher_is_better=True:  value >= good -> GOOD, value >= warning -> WARNING, else ISSUE
    higher_is_better=False: value <  good -> GOOD, value <  warning -> WARNING, else ISSUE
    """

    good: float
    warning: float
    higher_is_better: bool = True

    def classify(self, value: float) -> Severity:
        if self.higher_is_better:
            if value >= self.good:
                return Severity.GOOD
            if value >= self.warning:
                return Severity.WARNING
            return Severity.ISSUE
        if value < self.good:
            return Severity.GOOD
        if value < self.warning:
            return Severity.WARNING
        return Severity.ISSUE


LANDMARK_COVERAGE = Band(good=80, warning=50, higher_is_better=True)
DIV_RATIO = Band(good=0.4, warning=0.6, higher_is_better=False)

# Report-only bands (not part of the semantic classification)
DOM_DEPTH = Band(good=10, warning=15, higher_is_better=False)
TOP_LEVEL_SECTIONS = Band(good=3, warning=1, higher_is_better=True)


def landmark_severity(coverage_percent: float) -> Severity:
    return LANDMARK_COVERAGE.classify(coverage_percent)


def div_ratio_severity(div_ratio: float) -> Severity:
    return DIV_RATIO.classify(div_ratio)


def heading_severity(h1_count: int, has_skips: bool) -> Severity:
    """Exactly one h1 with a gap-free outline is good; no h1 at all is an issue."""
    if h1_count == 1 and not has_skips:
        return Severity.GOOD
    if h1_count == 0:
        return Severity.ISSUE
    return Severity.WARNING


def link_severity(link_issues: int) -> Severity:
    return Severity.GOOD if link_issues == 0 else Severity.WARNING


def structure_severity(difference_count: int) -> Severity:
    if difference_count == 0:
        return Severity.GOOD
    if difference_count == 1:
        return Severity.WARNING
    return Severity.ISSUE
