# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the shared severity bands."""

from __future__ import annotations

import pytest

from docsignals.thresholds import (
    DIV_RATIO,
    DOM_DEPTH,
    LANDMARK_COVERAGE,
    TOP_LEVEL_SECTIONS,
    Severity,
    heading_severity,
    link_severity,
    structure_severity,
)


class TestBand:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(100, Severity.GOOD), (80, Severity.GOOD), (79, Severity.WARNING), (50, Severity.WARNING), (49, Severity.ISSUE)],
    )
    def test_landmark_coverage(self, value, expected):
        assert LANDMARK_COVERAGE.classify(value) is expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.0, Severity.GOOD), (0.39, Severity.GOOD), (0.4, Severity.WARNING), (0.59, Severity.WARNING), (0.6, Severity.ISSUE)],
    )
    def test_div_ratio(self, value, expected):
        assert DIV_RATIO.classify(value) is expected

    def test_dom_depth(self):
        assert DOM_DEPTH.classify(9) is Severity.GOOD
        assert DOM_DEPTH.classify(10) is Severity.WARNING
        assert DOM_DEPTH.classify(15) is Severity.ISSUE

    def test_top_level_sections(self):
        assert TOP_LEVEL_SECTIONS.classify(3) is Severity.GOOD
        assert TOP_LEVEL_SECTIONS.classify(1) is Severity.WARNING
        assert TOP_LEVEL_SECTIONS.classify(0) is Severity.ISSUE


class TestJudgments:
    def test_headings(self):
        assert heading_severity(1, False) is Severity.GOOD
        assert heading_severity(1, True) is Severity.WARNING
        assert heading_severity(2, False) is Severity.WARNING
        assert heading_severity(0, False) is Severity.ISSUE

    def test_links(self):
        assert link_severity(0) is Severity.GOOD
        assert link_severity(3) is Severity.WARNING

    def test_structure(self):
        assert structure_severity(0) is Severity.GOOD
        assert structure_severity(1) is Severity.WARNING
        assert structure_severity(2) is Severity.ISSUE
