# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""DocSignals exception hierarchy.

All DocSignals-specific errors inherit from DocSignalsError, allowing callers
to catch the base class for any failure or specific subclasses for targeted
handling. The analysis core raises only EmptySampleError; everything else
comes from the fetch / relay boundary.
"""

from __future__ import annotations


class DocSignalsError(Exception):
    """Base exception for all DocSignals errors."""


class EmptySampleError(DocSignalsError, ValueError):
    """Analysis was called with no HTML samples."""


class UrlValidationError(DocSignalsError):
    """Target URL is malformed, not HTTP(S), or points at a private address."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class FetchError(DocSignalsError):
    """Fetching a sample failed (non-2xx status, transport failure)."""

    def __init__(self, message: str, *, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class FetchTimeoutError(FetchError):
    """The target did not answer within the configured timeout."""


class FetchBlockedError(FetchError):
    """Direct request was blocked and no relay is configured."""


class RelayError(FetchError):
    """The relay rejected the request or could not be reached."""
