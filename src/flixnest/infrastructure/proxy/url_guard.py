"""Target URL validation for every server-side fetch of a user-supplied URL.

Only http(s) targets on public hosts are allowed. Loopback, private,
link-local and other non-routable addresses are refused, as are
``localhost`` and mDNS ``*.local`` names, so the proxy cannot be used
to reach the host's own network.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from urllib.parse import unquote, urlsplit

import httpx
import structlog

from flixnest.domain.exceptions import BlockedTargetError, InvalidTargetError

log = structlog.get_logger(__name__)

_ALLOWED_SCHEMES = frozenset({"http", "https"})
_DOTTED_QUAD_CHARS = frozenset("0123456789.")
# Characters of the legacy inet_aton forms: 127.1, 2130706433, 0x7f.1, 0177.1
_NUMERIC_HOST_CHARS = frozenset("0123456789abcdefx.")


def _is_blocked_ip(addr: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return _is_blocked_ip(addr.ipv4_mapped)
    return (
        addr.is_loopback
        or addr.is_private
        or addr.is_link_local
        or addr.is_reserved
        or addr.is_unspecified
        or addr.is_multicast
    )


def is_blocked_host(hostname: str) -> bool:
    """Return True if *hostname* must never be fetched server-side."""
    host = hostname.strip().lower().rstrip(".")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not host:
        return True
    if host == "localhost" or host.endswith((".localhost", ".local")):
        return True

    try:
        addr = ipaddress.ip_address(host)
    except ValueError:
        legacy = _parse_legacy_ipv4(host)
        if legacy is not None:
            return _is_blocked_ip(legacy)
        # All-numeric hosts that are not valid addresses (e.g. "999.1.1.1")
        # are refused rather than handed to a resolver.
        return set(host) <= _DOTTED_QUAD_CHARS
    return _is_blocked_ip(addr)


def _parse_legacy_ipv4(host: str) -> ipaddress.IPv4Address | None:
    """Parse the shorthand, integer, octal and hex IPv4 forms.

    The system resolver accepts these and maps them to a plain address
    (``127.1`` and ``2130706433`` are both 127.0.0.1), so they must be
    judged by that address, not by their spelling.
    """
    if not host[0].isdigit() or not set(host) <= _NUMERIC_HOST_CHARS:
        return None
    try:
        packed = socket.inet_aton(host)
    except OSError:
        return None
    return ipaddress.IPv4Address(packed)


async def resolves_to_blocked_address(hostname: str) -> bool:
    """Resolve *hostname* and report whether any address is blocked.

    Unresolvable names are not blocked here; the upstream fetch fails on
    its own with a network error.
    """
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    except socket.gaierror:
        return False
    for _family, _type, _proto, _canon, sockaddr in infos:
        try:
            addr = ipaddress.ip_address(sockaddr[0])
        except ValueError:
            continue
        if _is_blocked_ip(addr):
            return True
    return False


def validate_target(raw: str | None) -> str:
    """Validate a user-supplied target URL and return it stripped.

    Raises:
        InvalidTargetError: missing, malformed, or non-http(s) URL.
        BlockedTargetError: host is local or private.
    """
    if raw is None or not raw.strip():
        raise InvalidTargetError("Missing url parameter")
    url = raw.strip()
    if "://" not in url and "%3a" in url.lower():
        # Target was percent-encoded twice by the caller.
        url = unquote(url)

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        # Accessing .port validates it (raises ValueError when out of range).
        parts.port  # noqa: B018
    except ValueError as e:
        raise InvalidTargetError("Invalid URL") from e

    if not parts.scheme:
        raise InvalidTargetError("Invalid URL")
    if parts.scheme.lower() not in _ALLOWED_SCHEMES:
        raise InvalidTargetError("Invalid protocol")
    if not hostname:
        raise InvalidTargetError("Invalid URL")
    if is_blocked_host(hostname):
        raise BlockedTargetError("Blocked host")
    return url


def make_request_guard(*, resolve_hostnames: bool = True):
    """Build an httpx request hook that re-checks every outbound request.

    httpx runs request hooks for each redirect hop too, so a public
    origin cannot redirect the proxy into the internal network.
    """

    async def guard_request(request: httpx.Request) -> None:
        url = request.url
        if url.scheme not in _ALLOWED_SCHEMES:
            raise InvalidTargetError("Invalid protocol")
        host = url.host
        if is_blocked_host(host):
            log.warning("proxy_blocked_target", host=host)
            raise BlockedTargetError("Blocked host")
        if resolve_hostnames and await resolves_to_blocked_address(host):
            log.warning("proxy_blocked_resolved_target", host=host)
            raise BlockedTargetError("Blocked host")

    return guard_request
