# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Bounded analysis history for side-by-side comparison.

Keeps the most recent ``limit`` results (default 10), most-recent-first, in
a single JSON file. Best-effort by contract: an unreadable, corrupt, or
unwritable log never fails a run. Reads degrade to an empty history and
writes become no-ops, logged at debug level.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from . import AnalysisResult, HistoryEntry
from .config import DEFAULT_HISTORY_LIMIT
from .serializer import entry_from_dict, entry_to_dict

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AnalysisHistory:
    """Most-recent-first JSON log of the last ``limit`` analyses."""

    def __init__(self, path: str | Path, *, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        self._path = Path(path)
        self._limit = limit

    @property
    def path(self) -> Path:
        return self._path

    @property
    def limit(self) -> int:
        return self._limit

    def entries(self) -> list[HistoryEntry]:
        """Stored entries, most recent first. Empty on any read or decode failure."""
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, ValueError):
            logger.debug("History unreadable at %s", self._path, exc_info=True)
            return []
        if not isinstance(raw, list):
            logger.debug("History at %s is not a list, ignoring", self._path)
            return []

        entries: list[HistoryEntry] = []
        for item in raw:
            try:
                entries.append(entry_from_dict(item))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed history entry", exc_info=True)
        return entries[: self._limit]

    def save(self, url: str, result: AnalysisResult, *, timestamp: str | None = None) -> HistoryEntry:
        """Prepend a new entry and trim to ``limit``. Never raises on storage failure."""
        entry = HistoryEntry(url=url, timestamp=timestamp or _now_iso(), result=result)
        updated = [entry, *self.entries()][: self._limit]
        self._write(updated)
        return entry

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError:
            logger.debug("History clear failed at %s", self._path, exc_info=True)

    def _write(self, entries: list[HistoryEntry]) -> None:
        payload = json.dumps([entry_to_dict(e) for e in entries], ensure_ascii=False, indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".history-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError:
            logger.debug("History write failed at %s", self._path, exc_info=True)
