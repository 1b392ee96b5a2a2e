# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
URL Utilities

SSRF guard and small URL helpers. These functions must be side-effect free:
no DNS lookups, no network access.
"""

from __future__ import annotations

import ipaddress
import re
import socket
from dataclasses import dataclass
from urllib.parse import urlsplit

from webrag_core.errors import BlockedURL

# Dotted, shorthand ("127.1"), integer ("2130706433"), hex and octal IPv4 forms.
_NUMERIC_HOST_RE = re.compile(r"^(?:0x[0-9a-f]*|\d+)(?:\.(?:0x[0-9a-f]*|\d+)){0,3}$")

_BLOCKED_IPV4_NETWORKS = tuple(
    ipaddress.IPv4Network(n)
    for n in (
        "0.0.0.0/8",
        "10.0.0.0/8",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "172.16.0.0/12",
        "192.168.0.0/16",
    )
)


@dataclass(frozen=True)
class SafeUrl:
    """A URL that passed `validate_public_http_url`."""

    url: str
    scheme: str
    host: str

    def __str__(self) -> str:
        return self.url


def normalize_host(host: str) -> str:
    host = (host or "").strip().lower()
    return host[4:] if host.startswith("www.") else host


def decode_ipv4(host: str) -> ipaddress.IPv4Address | None:
    """Decode a numeric host the way the system resolver does, or None if it is not one."""
    try:
        return ipaddress.IPv4Address(socket.inet_aton(host))
    except OSError:
        return None


def blocked_host_reason(hostname: str) -> str | None:
    """Return why `hostname` is refused, or None when it may be fetched."""
    h = (hostname or "").strip().lower().rstrip(".")
    if not h:
        return "empty host"
    if h == "localhost" or h.endswith(".localhost"):
        return "localhost"
    if h.endswith(".local"):
        return "mDNS .local host"
    if ":" in h:
        # Covers ::1 and every other IPv6 literal; ranges are not classified.
        return "IPv6 literal"
    if _NUMERIC_HOST_RE.match(h):
        ip = decode_ipv4(h)
        if ip is None:
            return "malformed IPv4 address"
        if any(ip in net for net in _BLOCKED_IPV4_NETWORKS):
            return "private IPv4 address"
    return None


def validate_public_http_url(raw_url: str) -> SafeUrl:
    """
    Accept only plain http(s) URLs pointing at public hosts.

    Raises:
        BlockedURL: scheme is not http/https, the URL is malformed, or the
            host is loopback, private, link-local or otherwise internal.
    """
    url = (raw_url or "").strip()
    try:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
    except ValueError as e:
        raise BlockedURL(url, f"malformed URL ({e})") from e

    scheme = (parts.scheme or "").lower()
    if scheme not in ("http", "https"):
        raise BlockedURL(url, f"protocol {scheme or '<none>'!r} not allowed")

    reason = blocked_host_reason(hostname)
    if reason:
        raise BlockedURL(url, f"host {hostname or '<none>'!r} blocked ({reason})")

    return SafeUrl(url=url, scheme=scheme, host=hostname.lower().rstrip("."))


def is_valid_public_http_url(url: str) -> bool:
    try:
        validate_public_http_url(url)
    except BlockedURL:
        return False
    return True


def canonical_url_for_dedupe(url: str) -> str:
    """
    Canonical URL representation for deduplication (host+path, no query/fragment).
    """
    try:
        u = urlsplit(url)
    except ValueError:
        return (url or "").strip()
    return normalize_host(u.netloc or "") + (u.path or "").rstrip("/")
