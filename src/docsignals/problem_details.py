# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""RFC 9457-style Problem Details for DocSignals failures.

Maps exceptions to one structured, user-facing error per run. The CLI
prints ``to_cli_text()``; ``--json`` mode prints ``to_json()``.

Key public API:

- ``ProblemType``: error taxonomy (StrEnum).
- ``ProblemDetail``: frozen dataclass (→ dict / JSON / CLI text).
- ``sanitize_detail()``: scrub credentials & local paths from messages.
- ``from_exception()``: build a ``ProblemDetail`` from any exception.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

# ── Constants ────────────────────────────────────────────────────────

_ERROR_BASE = "https://docsignals.dev/errors"

MAX_DETAIL_LENGTH = 200

# ── ProblemType taxonomy ─────────────────────────────────────────────


class ProblemType(StrEnum):
    INVALID_URL = "invalid-url"
    FETCH_FAILED = "fetch-failed"
    FETCH_TIMEOUT = "fetch-timeout"
    FETCH_BLOCKED = "fetch-blocked"
    RELAY_FAILED = "relay-failed"
    EMPTY_SAMPLES = "empty-samples"
    INTERNAL_ERROR = "internal-error"

    @property
    def uri(self) -> str:
        """Full type URI for the RFC 9457 ``type`` field."""
        return f"{_ERROR_BASE}/{self.value}"


# ── Per-type metadata: (status, title, cli_hint) ─────────────────────

_TYPE_METADATA: dict[ProblemType, tuple[int, str, str]] = {
    ProblemType.INVALID_URL: (400, "Invalid URL", "Provide a public http:// or https:// URL."),
    ProblemType.FETCH_FAILED: (502, "Fetch Failed", "Check that the page is reachable and returns HTML."),
    ProblemType.FETCH_TIMEOUT: (504, "Fetch Timed Out", "Try again, or raise the timeout with --timeout."),
    ProblemType.FETCH_BLOCKED: (
        502,
        "Request Blocked",
        "Start a relay with 'docsignals relay' and pass --relay-url http://127.0.0.1:8787/proxy.",
    ),
    ProblemType.RELAY_FAILED: (502, "Relay Failed", "Check that the relay server is running and reachable."),
    ProblemType.EMPTY_SAMPLES: (422, "No Samples", ""),
    ProblemType.INTERNAL_ERROR: (500, "Internal Error", "Re-run with --verbose for details."),
}

# ── Secret sanitization patterns ─────────────────────────────────────

_SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"Bearer\s+\S+"), "Bearer <redacted>"),
    (re.compile(r"Basic\s+[A-Za-z0-9+/=]{8,}"), "Basic <redacted>"),
    (re.compile(r"://[^@\s/]+@"), "://<redacted>@"),
    (
        re.compile(r"(?:API_KEY|SECRET|TOKEN|PASSWORD)\s*[=:]\s*\S+", re.IGNORECASE),
        "<redacted>",
    ),
]

_PATH_PATTERN = re.compile(
    r"(/(?:Users|home|tmp|var|etc|opt|root|srv|usr|private|mnt|media)/[\w./-]+"
    r"|[A-Z]:\\[\w.\\-]+)"
)


def sanitize_detail(text: str) -> str:
    """Scrub credentials and filesystem paths from *text*, then truncate."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    text = _PATH_PATTERN.sub("<path>", text)
    if len(text) > MAX_DETAIL_LENGTH:
        text = text[:MAX_DETAIL_LENGTH] + "..."
    return text


# ── ProblemDetail dataclass ──────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ProblemDetail:
    """Immutable, user-facing description of one failed run."""

    type: str
    title: str
    status: int
    detail: str
    hint: str = ""

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": self.type, "title": self.title, "status": self.status}
        if self.detail:
            d["detail"] = self.detail
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_cli_text(self) -> str:
        """Human-friendly CLI error message.

        Format::

            Error: <detail>
            Hint: <hint>
        """
        lines = [f"Error: {self.detail or self.title}"]
        if self.hint:
            lines.append(f"Hint: {self.hint}")
        return "\n".join(lines)


# ── Exception → ProblemType mapping ──────────────────────────────────


def _exception_type_map() -> list[tuple[type[BaseException], ProblemType]]:
    """Most specific classes first; first isinstance match wins."""
    from .errors import (
        EmptySampleError,
        FetchBlockedError,
        FetchError,
        FetchTimeoutError,
        RelayError,
        UrlValidationError,
    )

    return [
        (UrlValidationError, ProblemType.INVALID_URL),
        (FetchTimeoutError, ProblemType.FETCH_TIMEOUT),
        (FetchBlockedError, ProblemType.FETCH_BLOCKED),
        (RelayError, ProblemType.RELAY_FAILED),
        (FetchError, ProblemType.FETCH_FAILED),
        (EmptySampleError, ProblemType.EMPTY_SAMPLES),
        (TimeoutError, ProblemType.FETCH_TIMEOUT),
    ]


def from_exception(exc: BaseException) -> ProblemDetail:
    """Build a ProblemDetail from an exception.

    Known DocSignals errors keep their (sanitized) message. Anything else is
    reported as an internal error with its message scrubbed.
    """
    problem_type = ProblemType.INTERNAL_ERROR
    for exc_class, mapped in _exception_type_map():
        if isinstance(exc, exc_class):
            problem_type = mapped
            break

    status, title, hint = _TYPE_METADATA[problem_type]
    detail = sanitize_detail(str(exc)) or title
    return ProblemDetail(type=problem_type.uri, title=title, status=status, detail=detail, hint=hint)
