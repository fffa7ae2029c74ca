# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Progress indicators for CLI output.

Uses a ``rich`` spinner on interactive terminals; silent when stderr is
piped so reports stay clean for redirection.
"""

from __future__ import annotations

import contextlib
import sys
from collections.abc import Callable, Generator

from rich.console import Console


@contextlib.contextmanager
def status_spinner(msg: str) -> Generator[Callable[[str], None], None, None]:
    """Show a spinner with *msg* while active; yields a function that updates the message."""
    if not sys.stderr.isatty():
        yield lambda _msg: None
        return

    console = Console(stderr=True)
    with console.status(msg) as status:
        yield lambda new_msg: status.update(new_msg)


def fetch_progress(update: Callable[[str], None]) -> Callable[[int, int], None]:
    """Adapt a spinner updater to the fetcher's ``(index, total)`` progress callback."""

    def on_progress(index: int, total: int) -> None:
        update(f"Fetching sample {index + 1}/{total}...")

    return on_progress
