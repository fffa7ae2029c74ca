# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for HTML fetching, relay fallback, and the paced sample loop."""

from __future__ import annotations

import httpx
import pytest

from docsignals.config import Settings
from docsignals.errors import FetchBlockedError, FetchError, FetchTimeoutError, RelayError
from docsignals.fetcher import collect_samples, create_client, fetch_html, fetch_via_relay

RELAY_URL = "http://relay.test/proxy"


def _settings(**overrides) -> Settings:
    return Settings(fetch_delay=0, **overrides)


def _client(handler, settings: Settings) -> httpx.AsyncClient:
    return create_client(settings, transport=httpx.MockTransport(handler))


class TestFetchHtml:
    async def test_returns_body(self):
        settings = _settings()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, html="<body><p>hello</p></body>")

        async with _client(handler, settings) as client:
            assert await fetch_html("https://example.com/", client=client, settings=settings) == (
                "<body><p>hello</p></body>"
            )

    async def test_sends_user_agent(self):
        settings = _settings(user_agent="DocSignals-Test/1.0")
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["user-agent"])
            return httpx.Response(200, text="ok")

        async with _client(handler, settings) as client:
            await fetch_html("https://example.com/", client=client, settings=settings)
        assert seen == ["DocSignals-Test/1.0"]

    async def test_non_2xx(self):
        settings = _settings()

        async with _client(lambda request: httpx.Response(404, text="missing"), settings) as client:
            with pytest.raises(FetchError, match="HTTP 404") as exc_info:
                await fetch_html("https://example.com/x", client=client, settings=settings)
        assert exc_info.value.status_code == 404

    async def test_follows_redirects(self):
        settings = _settings()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "/new"})
            return httpx.Response(200, text="moved here")

        async with _client(handler, settings) as client:
            assert await fetch_html("https://example.com/old", client=client, settings=settings) == "moved here"

    async def test_redirect_loop(self):
        settings = _settings()

        async with _client(lambda request: httpx.Response(302, headers={"Location": "/loop"}), settings) as client:
            with pytest.raises(FetchError, match="Too many redirects"):
                await fetch_html("https://example.com/loop", client=client, settings=settings)

    async def test_redirect_to_private_address_blocked(self):
        settings = _settings()
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            if request.url.host == "example.com":
                return httpx.Response(302, headers={"Location": "http://127.1:8080/admin"})
            return httpx.Response(200, text="internal admin")

        async with _client(handler, settings) as client:
            with pytest.raises(FetchError, match="local/private"):
                await fetch_html("https://example.com/", client=client, settings=settings)
        assert seen == ["https://example.com/"]

    async def test_redirect_to_private_not_retried_via_relay(self):
        settings = _settings(relay_url=RELAY_URL)
        hosts: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            return httpx.Response(301, headers={"Location": "http://10.0.0.5/"})

        async with _client(handler, settings) as client:
            with pytest.raises(FetchError, match="local/private"):
                await fetch_html("https://example.com/", client=client, settings=settings)
        assert hosts == ["example.com"]

    async def test_timeout(self):
        settings = _settings()

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with _client(handler, settings) as client:
            with pytest.raises(FetchTimeoutError, match="timed out"):
                await fetch_html("https://example.com/", client=client, settings=settings)

    async def test_blocked_without_relay(self):
        settings = _settings()

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler, settings) as client:
            with pytest.raises(FetchBlockedError, match="relay"):
                await fetch_html("https://example.com/", client=client, settings=settings)

    async def test_relay_fallback(self):
        settings = _settings(relay_url=RELAY_URL)

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "relay.test":
                assert request.url.params["url"] == "https://example.com/"
                return httpx.Response(200, text="<body>via relay</body>")
            raise httpx.ConnectError("blocked", request=request)

        async with _client(handler, settings) as client:
            assert await fetch_html("https://example.com/", client=client, settings=settings) == (
                "<body>via relay</body>"
            )


class TestFetchViaRelay:
    async def test_relay_error_body_surfaces(self):
        settings = _settings(relay_url=RELAY_URL)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, text="Cannot analyze local/private addresses")

        async with _client(handler, settings) as client:
            with pytest.raises(RelayError, match="local/private"):
                await fetch_via_relay("https://example.com/", client=client, settings=settings)

    async def test_relay_error_empty_body(self):
        settings = _settings(relay_url=RELAY_URL)

        async with _client(lambda request: httpx.Response(502), settings) as client:
            with pytest.raises(RelayError, match="Relay error: 502"):
                await fetch_via_relay("https://example.com/", client=client, settings=settings)

    async def test_relay_unreachable(self):
        settings = _settings(relay_url=RELAY_URL)

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        async with _client(handler, settings) as client:
            with pytest.raises(RelayError, match="Unable to reach relay server"):
                await fetch_via_relay("https://example.com/", client=client, settings=settings)

    async def test_no_relay_configured(self):
        settings = _settings()
        async with _client(lambda request: httpx.Response(200), settings) as client:
            with pytest.raises(RelayError):
                await fetch_via_relay("https://example.com/", client=client, settings=settings)


class TestCollectSamples:
    async def test_fetches_count_times_in_order(self):
        settings = _settings()
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(len(calls))
            return httpx.Response(200, text=f"sample-{len(calls)}")

        async with _client(handler, settings) as client:
            samples = await collect_samples("https://example.com/", 3, client=client, settings=settings)
        assert samples == ["sample-1", "sample-2", "sample-3"]

    async def test_progress_callback(self):
        settings = _settings()
        progress: list[tuple[int, int]] = []

        async with _client(lambda request: httpx.Response(200, text="x"), settings) as client:
            await collect_samples(
                "https://example.com/",
                2,
                client=client,
                settings=settings,
                on_progress=lambda i, n: progress.append((i, n)),
            )
        assert progress == [(0, 2), (1, 2)]

    async def test_failure_aborts_run(self):
        settings = _settings()
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200 if calls == 1 else 500, text="x")

        async with _client(handler, settings) as client:
            with pytest.raises(FetchError, match="HTTP 500"):
                await collect_samples("https://example.com/", 3, client=client, settings=settings)
        assert calls == 2

    async def test_delay_between_fetches(self, monkeypatch):
        settings = Settings(fetch_delay=0.25)
        sleeps: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)

        monkeypatch.setattr("docsignals.fetcher.asyncio.sleep", fake_sleep)
        async with _client(lambda request: httpx.Response(200, text="x"), settings) as client:
            await collect_samples("https://example.com/", 3, client=client, settings=settings)
        assert sleeps == [0.25, 0.25]

    async def test_invalid_count(self):
        settings = _settings()
        async with _client(lambda request: httpx.Response(200), settings) as client:
            with pytest.raises(ValueError):
                await collect_samples("https://example.com/", 0, client=client, settings=settings)
