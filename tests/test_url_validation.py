# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for target URL validation and SSRF defenses."""

from __future__ import annotations

import socket
from unittest.mock import patch

import pytest

from docsignals.errors import UrlValidationError
from docsignals.url_validation import (
    INVALID_URL,
    PRIVATE_ADDRESS,
    SCHEME_NOT_ALLOWED,
    blocked_reason,
    normalize_ip,
    validate_resolved_url,
    validate_url,
)

# ── validate_url ─────────────────────────────────────────────────────


class TestValidateUrl:
    def test_https_passthrough(self):
        assert validate_url("https://example.com/page?q=1") == "https://example.com/page?q=1"

    def test_scheme_added(self):
        assert validate_url("example.com") == "https://example.com/"

    def test_whitespace_trimmed(self):
        assert validate_url("  https://example.com/a  ") == "https://example.com/a"

    def test_host_lowercased(self):
        assert validate_url("HTTPS://Example.COM/Path") == "https://example.com/Path"

    def test_http_allowed(self):
        assert validate_url("http://example.com") == "http://example.com/"

    @pytest.mark.parametrize("raw", ["ftp://example.com/file", "file:///etc/passwd"])
    def test_other_schemes_rejected(self, raw):
        with pytest.raises(UrlValidationError, match="HTTP"):
            validate_url(raw)

    @pytest.mark.parametrize("raw", ["", "   ", "https://", "https://exa mple.com", "https://example.com:99999"])
    def test_malformed(self, raw):
        with pytest.raises(UrlValidationError):
            validate_url(raw)

    @pytest.mark.parametrize(
        "raw",
        [
            "http://localhost:3000",
            "http://app.localhost/",
            "http://127.0.0.1/",
            "http://10.1.2.3/",
            "http://172.16.0.1/",
            "http://192.168.1.1/",
            "http://169.254.169.254/latest/meta-data",
            "http://[::1]/",
            "http://0177.0.0.1/",
            "http://0x7f000001/",
            "http://2130706433/",
            "http://127.1/",
            "http://127.0.1/",
            "http://10.1/",
            "http://0x7f.1/",
            "http://0177.1/",
            "http://192.168.257/",
            "http://127.0.0.1./",
            "http://metadata.google.internal/",
        ],
    )
    def test_private_targets_rejected(self, raw):
        with pytest.raises(UrlValidationError, match="local/private"):
            validate_url(raw)

    def test_error_keeps_input(self):
        with pytest.raises(UrlValidationError) as exc_info:
            validate_url("http://localhost")
        assert exc_info.value.url == "http://localhost"


class TestBlockedReason:
    def test_public(self):
        assert blocked_reason("https://example.com/") is None

    def test_scheme(self):
        assert blocked_reason("javascript:alert(1)") == SCHEME_NOT_ALLOWED

    def test_no_host(self):
        assert blocked_reason("https:///path") == INVALID_URL

    def test_private(self):
        assert blocked_reason("http://192.168.0.10:8080/") == PRIVATE_ADDRESS


class TestNormalizeIp:
    @pytest.mark.parametrize(
        ("host", "expected"),
        [
            ("127.0.0.1", "127.0.0.1"),
            ("2130706433", "127.0.0.1"),
            ("0x7f000001", "127.0.0.1"),
            ("0177.0.0.01", "127.0.0.1"),
            ("::1", "::1"),
            ("127.1", "127.0.0.1"),
            ("127.0.1", "127.0.0.1"),
            ("10.1", "10.0.0.1"),
            ("0x7f.1", "127.0.0.1"),
            ("0177.1", "127.0.0.1"),
            ("192.168.257", "192.168.1.1"),
            ("1.2.3", "1.2.0.3"),
            ("127.0.0.1.", "127.0.0.1"),
        ],
    )
    def test_encodings(self, host, expected):
        assert normalize_ip(host) == expected

    @pytest.mark.parametrize("host", ["example.com", "099.0.0.1", "1.2.3.4.5", "256.1.1.1", "0x7g.1"])
    def test_not_ip(self, host):
        assert normalize_ip(host) is None


# ── DNS rebinding ────────────────────────────────────────────────────


def _addrinfo(*ips: str):
    return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", (ip, 0)) for ip in ips]


class TestValidateResolvedUrl:
    async def test_public_resolution(self):
        with patch("docsignals.url_validation.socket.getaddrinfo", return_value=_addrinfo("93.184.216.34")):
            assert await validate_resolved_url("example.com") == "https://example.com/"

    async def test_private_resolution_rejected(self):
        with (
            patch("docsignals.url_validation.socket.getaddrinfo", return_value=_addrinfo("93.184.216.34", "10.0.0.5")),
            pytest.raises(UrlValidationError, match="local/private"),
        ):
            await validate_resolved_url("rebind.example.com")

    async def test_dns_failure(self):
        with (
            patch("docsignals.url_validation.socket.getaddrinfo", side_effect=socket.gaierror("nope")),
            pytest.raises(UrlValidationError, match="DNS resolution failed"),
        ):
            await validate_resolved_url("missing.example.com")

    async def test_ip_literal_skips_dns(self):
        with patch("docsignals.url_validation.socket.getaddrinfo") as getaddrinfo:
            assert await validate_resolved_url("http://93.184.216.34/") == "http://93.184.216.34/"
        getaddrinfo.assert_not_called()
