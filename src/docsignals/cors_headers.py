# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Permissive CORS headers middleware for the relay.

Standalone leaf module with zero dependency on relay.py.

Design choices:

- **Pure ASGI**: no BaseHTTPMiddleware (no body buffering).
- **Unconditional**: headers are sent on every response, with or without an
  ``Origin`` request header, so browser callers on any origin can read the
  relayed body. Starlette's CORSMiddleware only answers real CORS requests.
- **Deduplication**: headers the app already set are never overwritten.
"""

from __future__ import annotations

CORS_HEADERS: tuple[tuple[bytes, bytes], ...] = (
    (b"access-control-allow-origin", b"*"),
    (b"access-control-allow-methods", b"GET, OPTIONS"),
    (b"access-control-allow-headers", b"Content-Type"),
)


class CorsHeadersMiddleware:
    """Inject ``CORS_HEADERS`` on every ``http.response.start`` message."""

    def __init__(self, app) -> None:
        self.app = app

    async def __call__(self, scope, receive, send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        _injected = False

        async def _send_with_cors_headers(message) -> None:
            nonlocal _injected
            if message["type"] == "http.response.start" and not _injected:
                _injected = True
                headers = list(message.get("headers", []))
                existing = frozenset(h[0].lower() for h in headers)
                for name, value in CORS_HEADERS:
                    if name not in existing:
                        headers.append((name, value))
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, _send_with_cors_headers)
