# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DOM normalization: raw HTML -> comparable structural fingerprint.

Pipeline:
  1. Parse with lxml (recovering parser, comments/PIs dropped)
  2. Locate <body>; missing body or unparsable input -> degenerate node
  3. Pre-order walk of retained elements, skipping noise subtrees
  4. Flatten descendant tag names into one ordered tuple

The element walk is shared with the structure metrics and the semantic
analyzer so every component agrees on what "an element under body" is.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import lxml.html
from lxml import etree

from . import NormalizedNode

logger = logging.getLogger(__name__)

# Non-content tags: skipped together with their whole subtree
NOISE_TAGS: frozenset[str] = frozenset({"script", "style", "noscript", "svg", "path"})

# huge_tree lifts libxml2's 255-level nesting cap, past which it drops the rest of the document
_PARSER = lxml.html.HTMLParser(encoding="utf-8", remove_comments=True, remove_pis=True, huge_tree=True)

_EMPTY_BODY = NormalizedNode(tag="body", child_tags=())


def tag_name(el: lxml.html.HtmlElement) -> str:
    """Lower-cased element name."""
    return el.tag.lower()


def _retained_children(el: lxml.html.HtmlElement) -> list[lxml.html.HtmlElement]:
    # Comments, PIs and entities have a non-string tag
    return [c for c in el if isinstance(c.tag, str) and c.tag.lower() not in NOISE_TAGS]


def parse_document(html: str) -> lxml.html.HtmlElement | None:
    """Parse *html* into an lxml document root. Returns None when there is nothing to parse."""
    if not html or not html.strip():
        return None
    try:
        return lxml.html.document_fromstring(html.encode("utf-8", errors="replace"), parser=_PARSER)
    except (etree.LxmlError, ValueError):
        logger.debug("HTML parse failed, treating sample as empty", exc_info=True)
        return None


def find_body(doc: lxml.html.HtmlElement | None) -> lxml.html.HtmlElement | None:
    """Return the <body> element of a parsed document, if any."""
    if doc is None:
        return None
    if isinstance(doc.tag, str) and doc.tag.lower() == "body":
        return doc
    return doc.find("body")


def parse_body(html: str) -> lxml.html.HtmlElement | None:
    """Parse *html* and return its <body> element (None if absent)."""
    return find_body(parse_document(html))


def iter_elements(root: lxml.html.HtmlElement) -> Iterator[tuple[lxml.html.HtmlElement, int]]:
    """Yield ``(element, depth)`` for retained descendants of *root* in pre-order.

    Direct children of *root* have depth 1. Noise subtrees are not entered.
    Iterative to stay clear of the recursion limit on pathological nesting.
    """
    stack = [(child, 1) for child in reversed(_retained_children(root))]
    while stack:
        el, depth = stack.pop()
        yield el, depth
        stack.extend((child, depth + 1) for child in reversed(_retained_children(el)))


def normalize_body(body: lxml.html.HtmlElement | None) -> NormalizedNode:
    """Fingerprint an already-parsed <body> element."""
    if body is None:
        return _EMPTY_BODY
    return NormalizedNode(
        tag=tag_name(body),
        child_tags=tuple(tag_name(el) for el, _depth in iter_elements(body)),
    )


def normalize(html: str) -> NormalizedNode:
    """Reduce *html* to the structural fingerprint of its <body>.

    Pure: the same input always yields an equal node. Never raises on
    malformed markup; anything without a usable body normalizes to
    ``NormalizedNode("body", ())``.
    """
    return normalize_body(parse_body(html))
