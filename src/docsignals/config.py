# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Runtime settings: frozen dataclass populated from ``DOCSIGNALS_*`` env vars.

CLI flags override individual fields with ``dataclasses.replace``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from . import __version__

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_FETCH_COUNT = 3
MAX_FETCH_COUNT = 10
DEFAULT_FETCH_DELAY = 0.3
DEFAULT_USER_AGENT = f"DocSignals/{__version__}"
DEFAULT_HISTORY_LIMIT = 10
DEFAULT_RELAY_HOST = "127.0.0.1"
DEFAULT_RELAY_PORT = 8787
MAX_REDIRECTS = 5


def _default_history_path() -> Path:
    return Path.home() / ".docsignals" / "history.json"


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("Ignoring negative %s=%r, using %s", name, raw, default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


@dataclass(frozen=True, slots=True)
class Settings:
    """Fetch, relay, and history settings shared by the CLI and the relay server."""

    timeout: float = DEFAULT_TIMEOUT  # seconds, per request
    relay_url: str | None = None  # e.g. "http://127.0.0.1:8787/proxy"
    fetch_count: int = DEFAULT_FETCH_COUNT
    fetch_delay: float = DEFAULT_FETCH_DELAY  # pause between fetches
    user_agent: str = DEFAULT_USER_AGENT
    history_path: Path | None = None  # None = history disabled
    history_limit: int = DEFAULT_HISTORY_LIMIT
    resolve_dns: bool = False  # reject hostnames resolving to private IPs
    relay_host: str = DEFAULT_RELAY_HOST
    relay_port: int = DEFAULT_RELAY_PORT

    def __post_init__(self) -> None:
        if not 1 <= self.fetch_count <= MAX_FETCH_COUNT:
            raise ValueError(f"fetch_count must be between 1 and {MAX_FETCH_COUNT}, got {self.fetch_count}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.fetch_delay < 0:
            raise ValueError(f"fetch_delay must be non-negative, got {self.fetch_delay}")

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ``DOCSIGNALS_*`` environment variables."""
        fetch_count = _env_int("DOCSIGNALS_FETCH_COUNT", DEFAULT_FETCH_COUNT)
        if not 1 <= fetch_count <= MAX_FETCH_COUNT:
            logger.warning("Ignoring out-of-range DOCSIGNALS_FETCH_COUNT=%d", fetch_count)
            fetch_count = DEFAULT_FETCH_COUNT
        timeout = _env_float("DOCSIGNALS_TIMEOUT", DEFAULT_TIMEOUT) or DEFAULT_TIMEOUT
        history_raw = os.environ.get("DOCSIGNALS_HISTORY_PATH", "").strip()
        return cls(
            timeout=timeout,
            relay_url=os.environ.get("DOCSIGNALS_RELAY_URL", "").strip() or None,
            fetch_count=fetch_count,
            fetch_delay=_env_float("DOCSIGNALS_FETCH_DELAY", DEFAULT_FETCH_DELAY),
            user_agent=_env_str("DOCSIGNALS_USER_AGENT", DEFAULT_USER_AGENT),
            history_path=Path(history_raw).expanduser() if history_raw else _default_history_path(),
            resolve_dns=_env_bool("DOCSIGNALS_RESOLVE_DNS", False),
            relay_host=_env_str("DOCSIGNALS_RELAY_HOST", DEFAULT_RELAY_HOST),
            relay_port=_env_int("DOCSIGNALS_RELAY_PORT", DEFAULT_RELAY_PORT),
        )
