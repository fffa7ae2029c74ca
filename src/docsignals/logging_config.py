# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Logging for the CLI and the relay: structlog rendering over stdlib loggers.

Modules log with ``logging.getLogger(__name__)``; ``configure`` installs one
stderr handler whose formatter runs the structlog processor chain, so
docsignals, httpx and uvicorn records share one format.

- CLI: ``ConsoleRenderer`` (stderr, keeps stdout free for the report)
- relay server: ``JSONRenderer`` (one JSON object per line)

``run_context`` binds per-run fields (url, fetch count) into every record
emitted inside it.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from collections.abc import Iterator

import structlog

# Third-party loggers that are chatty at INFO / DEBUG
_QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "hpack")


def _pre_chain() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure(*, json_output: bool = False, level: str = "INFO") -> None:
    """Install the stderr handler and structlog config. Safe to call repeatedly.

    Args:
        json_output: JSON lines (relay server) instead of console output (CLI).
        level: root level name; unknown names fall back to INFO.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    quiet_level = max(root.level, logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)


@contextlib.contextmanager
def run_context(**fields: object) -> Iterator[None]:
    """Attach *fields* to every log record emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**fields):
        yield
