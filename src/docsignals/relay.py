# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""CORS relay: ``GET /proxy?url=<absolute URL>`` -> upstream body, readable from any origin.

A pass-through byte relay for callers that cannot fetch cross-origin pages
themselves. The relay follows redirects on its own (bounded), forwards the
final upstream status / content type / body, and always answers with
permissive CORS headers.

Status mapping:
  400  missing / malformed ``url`` parameter, non-HTTP(S) scheme
  403  loopback / private target (unless ``allow_private``)
  502  upstream unreachable, bad redirect target, too many redirects
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import httpx
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from .config import MAX_REDIRECTS, Settings
from .cors_headers import CorsHeadersMiddleware
from .url_validation import ALLOWED_URL_SCHEMES, blocked_reason

logger = logging.getLogger(__name__)

RELAY_TIMEOUT = 15.0
RELAY_CONNECT_TIMEOUT = 5.0
RELAY_ACCEPT = "text/html,*/*"
DEFAULT_CONTENT_TYPE = "text/html"


def _text(body: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(body, status_code=status_code)


def _parse_target(raw: str | None) -> tuple[str | None, Response | None]:
    """Validate the ``url`` query parameter. Returns ``(url, None)`` or ``(None, error_response)``."""
    if not raw:
        return None, _text("Missing url parameter", 400)
    try:
        parsed = urlparse(raw)
        _ = parsed.port  # raises ValueError on a malformed port
    except ValueError:
        return None, _text("Invalid URL", 400)
    if not parsed.scheme or not parsed.netloc or not parsed.hostname:
        return None, _text("Invalid URL", 400)
    if parsed.scheme.lower() not in ALLOWED_URL_SCHEMES:
        return None, _text("Only http/https allowed", 400)
    try:
        httpx.URL(raw)
    except httpx.InvalidURL:
        return None, _text("Invalid URL", 400)
    return raw, None


def _is_redirect(response: httpx.Response) -> bool:
    return 300 <= response.status_code < 400 and "location" in response.headers


async def relay_request(
    target: str,
    client: httpx.AsyncClient,
    *,
    allow_private: bool = False,
) -> Response:
    """Fetch *target*, following up to ``MAX_REDIRECTS`` redirects, and mirror the final response."""
    url = httpx.URL(target)
    for redirect_count in range(MAX_REDIRECTS + 1):
        try:
            upstream = await client.get(url)
        except httpx.HTTPError as e:
            logger.info("Relay upstream error for %s: %s", url, type(e).__name__)
            return _text(f"Proxy error: {str(e) or type(e).__name__}", 502)

        if not _is_redirect(upstream):
            content_type = upstream.headers.get("content-type") or DEFAULT_CONTENT_TYPE
            logger.debug("Relayed %s -> %d (%d redirects)", target, upstream.status_code, redirect_count)
            return Response(
                content=upstream.content,
                status_code=upstream.status_code,
                headers={"Content-Type": content_type},
            )

        try:
            url = url.join(upstream.headers["location"])
        except (httpx.InvalidURL, ValueError):
            return _text("Invalid redirect URL", 502)
        if url.scheme not in ALLOWED_URL_SCHEMES or not url.host:
            return _text("Invalid redirect URL", 502)
        if not allow_private and blocked_reason(str(url)) is not None:
            return _text("Redirect to a local/private address blocked", 502)

    return _text("Too many redirects", 502)


def create_relay_app(
    settings: Settings | None = None,
    *,
    allow_private: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Starlette:
    """Build the relay ASGI app.

    Args:
        settings: user agent source; defaults to ``Settings()``.
        allow_private: permit loopback / private targets (local development only).
        transport: upstream transport override (tests inject ``httpx.MockTransport``).
    """
    settings = settings or Settings()
    timeout = httpx.Timeout(RELAY_TIMEOUT, connect=RELAY_CONNECT_TIMEOUT)
    headers = {"User-Agent": settings.user_agent, "Accept": RELAY_ACCEPT}

    async def proxy(request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=204)

        target, error = _parse_target(request.query_params.get("url"))
        if error is not None:
            return error
        if not allow_private:
            reason = blocked_reason(target)
            if reason is not None:
                return _text(reason, 403)

        async with httpx.AsyncClient(
            headers=headers,
            timeout=timeout,
            follow_redirects=False,
            transport=transport,
        ) as client:
            return await relay_request(target, client, allow_private=allow_private)

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return Starlette(
        routes=[
            Route("/proxy", proxy, methods=["GET", "OPTIONS"]),
            Route("/health", health, methods=["GET"]),
        ],
        middleware=[Middleware(CorsHeadersMiddleware)],
    )


async def run_relay_server(
    host: str,
    port: int,
    settings: Settings | None = None,
    *,
    allow_private: bool = False,
) -> None:
    """Serve the relay with uvicorn until interrupted."""
    import uvicorn

    app = create_relay_app(settings, allow_private=allow_private)
    # log_config=None keeps uvicorn on the handler installed by logging_config
    config = uvicorn.Config(app, host=host, port=port, log_config=None)
    server = uvicorn.Server(config)
    logger.info("Relay listening on http://%s:%d/proxy (allow_private=%s)", host, port, allow_private)
    await server.serve()
