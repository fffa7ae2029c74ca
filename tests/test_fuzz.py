# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Property-based fuzz tests using Hypothesis.

Verifies that the analysis core is total (never raises on arbitrary markup)
and that its invariants hold for generated documents.
"""

from __future__ import annotations

from hypothesis import HealthCheck, example, given, settings
from hypothesis import strategies as st

from docsignals import NormalizedNode, SemanticClassification
from docsignals.normalizer import normalize
from docsignals.semantics import analyze_semantics, classify_semantics
from docsignals.structure import count_differences, nodes_equal
from docsignals.thresholds import Severity, div_ratio_severity, heading_severity, landmark_severity

# ---------------------------------------------------------------------------
# Module-level strategies
# ---------------------------------------------------------------------------

HTML_LIKE = st.text(
    alphabet=st.characters(
        whitelist_categories=("L", "N", "P", "Z"),
        whitelist_characters="<>/=\"'&;#!.- \n\t",
    ),
    min_size=0,
    max_size=2000,
)

TAGS = st.sampled_from(
    ["div", "span", "p", "a", "main", "nav", "header", "footer", "section", "aside", "h1", "h2", "h3", "ul", "li"]
)


@st.composite
def documents(draw, max_elements: int = 25) -> str:
    """Small well-formed-ish documents built from a fixed tag vocabulary."""
    parts: list[str] = []
    open_tags: list[str] = []
    for _ in range(draw(st.integers(0, max_elements))):
        if open_tags and draw(st.booleans()):
            parts.append(f"</{open_tags.pop()}>")
        tag = draw(TAGS)
        attrs = ' href="/x"' if tag == "a" else ""
        parts.append(f"<{tag}{attrs}>{draw(st.sampled_from(['', 'text', 'click here']))}")
        open_tags.append(tag)
    parts.extend(f"</{t}>" for t in reversed(open_tags))
    return "<html><body>" + "".join(parts) + "</body></html>"


NODES = st.builds(NormalizedNode, tag=st.just("body"), child_tags=st.lists(TAGS, max_size=5).map(tuple))

_SETTINGS = settings(max_examples=100, deadline=None, suppress_health_check=[HealthCheck.too_slow])

# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------


class TestNormalizerFuzz:
    @given(html=HTML_LIKE)
    @example(html="")
    @example(html="<")
    @example(html="<body><script>")
    @_SETTINGS
    def test_never_raises_and_deterministic(self, html):
        node = normalize(html)
        assert node == normalize(html)
        assert not {"script", "style", "noscript", "svg", "path"} & set(node.child_tags)

    @given(html=documents())
    @_SETTINGS
    def test_noise_injection_is_invisible(self, html):
        noisy = html.replace("<body>", "<body><script>var x = 1;</script><style>p{}</style>", 1)
        assert normalize(noisy) == normalize(html)


# ---------------------------------------------------------------------------
# Comparator
# ---------------------------------------------------------------------------


class TestComparatorFuzz:
    @given(a=NODES, b=NODES)
    @_SETTINGS
    def test_equality_symmetric(self, a, b):
        assert nodes_equal(a, b) == nodes_equal(b, a)

    @given(nodes=st.lists(NODES, min_size=1, max_size=6))
    @_SETTINGS
    def test_difference_count_bounded(self, nodes):
        n = len(nodes)
        assert 0 <= count_differences(nodes) <= n * (n - 1) // 2

    @given(nodes=st.lists(NODES, min_size=1, max_size=6), data=st.data())
    @_SETTINGS
    def test_difference_count_order_independent(self, nodes, data):
        shuffled = data.draw(st.permutations(nodes))
        assert count_differences(shuffled) == count_differences(nodes)


# ---------------------------------------------------------------------------
# Semantic analyzer
# ---------------------------------------------------------------------------


class TestSemanticsFuzz:
    @given(html=HTML_LIKE)
    @_SETTINGS
    def test_never_raises_on_arbitrary_text(self, html):
        result = analyze_semantics(html)
        assert 0 <= result.landmarks.coverage_percent <= 100
        assert 0.0 <= result.div_ratio <= 1.0

    @given(html=documents())
    @_SETTINGS
    def test_classification_consistent_with_bands(self, html):
        r = analyze_semantics(html)
        landmarks = landmark_severity(r.landmarks.coverage_percent)
        divs = div_ratio_severity(r.div_ratio)
        headings = heading_severity(r.headings.h1_count, r.headings.has_skips)
        if r.classification is SemanticClassification.EXPLICIT:
            assert landmarks is Severity.GOOD and divs is Severity.GOOD and headings is Severity.GOOD
        elif r.classification is SemanticClassification.OPAQUE:
            assert Severity.ISSUE in (landmarks, divs)
        else:
            assert Severity.ISSUE not in (landmarks, divs)

    @given(html=documents())
    @_SETTINGS
    def test_link_issues_bounded_by_links(self, html):
        r = analyze_semantics(html)
        assert 0 <= r.link_issues <= html.count("<a ")

    @given(
        coverage=st.integers(0, 100),
        div_ratio=st.floats(0.0, 1.0),
        h1=st.integers(0, 3),
        skips=st.booleans(),
    )
    @_SETTINGS
    def test_more_coverage_never_worse(self, coverage, div_ratio, h1, skips):
        rank = {SemanticClassification.OPAQUE: 0, SemanticClassification.PARTIAL: 1, SemanticClassification.EXPLICIT: 2}
        lower = classify_semantics(coverage, div_ratio, h1, skips)
        higher = classify_semantics(min(100, coverage + 10), div_ratio, h1, skips)
        assert rank[higher] >= rank[lower]
