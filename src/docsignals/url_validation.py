# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Target URL validation: HTTP(S) only, no loopback / private / link-local hosts.

Sync checks cover the scheme, blocked hostnames, and IP literals in any
encoding (dotted, short, octal, hex, decimal). ``validate_resolved_url`` adds a DNS
lookup so a public-looking hostname cannot resolve to a private address.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import re
import socket
from urllib.parse import urlparse

from .errors import UrlValidationError

logger = logging.getLogger(__name__)

ALLOWED_URL_SCHEMES = frozenset({"http", "https"})

BLOCKED_HOSTS = frozenset(
    {
        "localhost",
        "localhost.localdomain",
        "ip6-localhost",
        "ip6-loopback",
        "metadata.google.internal",  # GCP metadata
    }
)

# Private/reserved IP ranges (RFC 1918, loopback, link-local, CGNAT, IPv4-mapped IPv6)
_PRIVATE_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),  # "This" network
    ipaddress.ip_network("100.64.0.0/10"),  # CGNAT (Carrier-grade NAT)
    ipaddress.ip_network("::/128"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
    ipaddress.ip_network("::ffff:0:0/96"),  # IPv4-mapped IPv6
]

DNS_RESOLVE_TIMEOUT_SECONDS = 2.0

_HOSTNAME_RE = re.compile(r"^[\w.~%:-]+$")

INVALID_URL = "Invalid URL"
SCHEME_NOT_ALLOWED = "HTTP(S) only"
PRIVATE_ADDRESS = "Cannot analyze local/private addresses"


def normalize_ip(hostname: str) -> str | None:
    """Normalize an IP literal in any encoding to standard form.

    Returns the normalized IP string, or None if *hostname* is not an IP
    literal. IPv4 goes through ``inet_aton`` so every form the OS resolver
    accepts is recognised: 0177.0.0.1 (octal), 0x7f000001 (hex),
    2130706433 (decimal) and short forms like 127.1 or 0x7f.1.
    No DNS queries are performed.
    """
    host = hostname.rstrip(".") or hostname
    try:
        return str(ipaddress.ip_address(host))
    except ValueError:
        pass

    try:
        packed = socket.inet_aton(host)
    except (OSError, ValueError):
        return None
    return str(ipaddress.IPv4Address(packed))


def is_private_ip(addr: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    return any(addr in net for net in _PRIVATE_NETWORKS)


def blocked_reason(url: str) -> str | None:
    """Return None if *url* is safe to fetch, or a user-facing error message."""
    try:
        parsed = urlparse(url)
        hostname = (parsed.hostname or "").lower()
        _ = parsed.port  # raises ValueError on a malformed port
    except ValueError:
        return INVALID_URL

    scheme = (parsed.scheme or "").lower()
    if scheme not in ALLOWED_URL_SCHEMES:
        return SCHEME_NOT_ALLOWED
    if not hostname or not _HOSTNAME_RE.match(hostname):
        return INVALID_URL

    if hostname in BLOCKED_HOSTS or hostname.endswith(".localhost"):
        return PRIVATE_ADDRESS

    check_ip = normalize_ip(hostname)
    if check_ip is not None and is_private_ip(ipaddress.ip_address(check_ip)):
        return PRIVATE_ADDRESS
    return None


def validate_url(raw: str) -> str:
    """Validate user input and return the normalized absolute URL.

    Input without a scheme is treated as ``https://``.

    Raises:
        UrlValidationError: malformed, non-HTTP(S), or local/private target.
    """
    candidate = (raw or "").strip()
    if not candidate:
        raise UrlValidationError(INVALID_URL, url=raw)
    if "://" not in candidate:
        candidate = f"https://{candidate}"

    reason = blocked_reason(candidate)
    if reason is not None:
        raise UrlValidationError(reason, url=raw)

    parsed = urlparse(candidate)
    # Mirror WHATWG URL serialization: lower-case scheme/host, "/" for an empty path
    netloc = parsed.netloc.lower() if "@" not in parsed.netloc else parsed.netloc
    return parsed._replace(scheme=parsed.scheme.lower(), netloc=netloc, path=parsed.path or "/").geturl()


# ── DNS rebinding defense ────────────────────────────────────────────


async def resolve_host(hostname: str) -> list[str]:
    """Resolve hostname to deduplicated IP address list.

    Raises UrlValidationError on DNS failure or timeout.
    """

    def _sync_resolve() -> list[str]:
        results = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
        seen: set[str] = set()
        ips: list[str] = []
        for _family, _type, _proto, _canonname, sockaddr in results:
            ip = sockaddr[0]
            if ip not in seen:
                seen.add(ip)
                ips.append(ip)
        return ips

    try:
        return await asyncio.wait_for(asyncio.to_thread(_sync_resolve), timeout=DNS_RESOLVE_TIMEOUT_SECONDS)
    except TimeoutError as e:
        raise UrlValidationError(f"DNS resolution timed out for '{hostname}'") from e
    except socket.gaierror as e:
        raise UrlValidationError(f"DNS resolution failed for '{hostname}'") from e


async def validate_resolved_url(raw: str) -> str:
    """``validate_url`` plus a DNS check that every resolved address is public."""
    url = validate_url(raw)
    hostname = (urlparse(url).hostname or "").lower()
    if normalize_ip(hostname) is not None:
        return url  # IP literal, already checked

    ips = await resolve_host(hostname)
    if not ips:
        raise UrlValidationError(f"DNS resolution returned no addresses for '{hostname}'", url=raw)
    for ip_str in ips:
        try:
            addr = ipaddress.ip_address(ip_str.split("%", 1)[0])
        except ValueError:
            raise UrlValidationError(f"Invalid IP '{ip_str}' resolved from '{hostname}'", url=raw) from None
        if is_private_ip(addr) or not addr.is_global:
            logger.info("Blocked %s: resolved to non-public address %s", hostname, ip_str)
            raise UrlValidationError(PRIVATE_ADDRESS, url=raw)
    return url
