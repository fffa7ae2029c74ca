# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the analysis orchestrator."""

from __future__ import annotations

import pytest

from docsignals import SemanticClassification, StructureClassification
from docsignals.analysis import analyze
from docsignals.errors import EmptySampleError
from docsignals.semantics import analyze_semantics


class TestAnalyze:
    def test_empty_samples_raise(self):
        with pytest.raises(EmptySampleError):
            analyze([], "https://example.com/")

    def test_url_carried_through(self, semantic_page):
        result = analyze([semantic_page], "https://example.com/guide")
        assert result.url == "https://example.com/guide"

    def test_combines_both_dimensions(self, semantic_page):
        result = analyze([semantic_page] * 3, "https://example.com/")
        assert result.structure.classification is StructureClassification.DETERMINISTIC
        assert result.semantics.classification is SemanticClassification.EXPLICIT

    def test_semantics_from_first_sample(self, semantic_page, div_soup_page):
        result = analyze([div_soup_page, semantic_page], "https://example.com/")
        assert result.semantics == analyze_semantics(div_soup_page)
        assert result.structure.difference_count == 1

    def test_idempotent(self, semantic_page, div_soup_page):
        samples = [semantic_page, div_soup_page, semantic_page]
        assert analyze(samples, "https://example.com/") == analyze(samples, "https://example.com/")

    def test_result_is_immutable(self, semantic_page):
        result = analyze([semantic_page], "https://example.com/")
        with pytest.raises(AttributeError):
            result.url = "https://other.example/"  # type: ignore[misc]
