"""Gateway exceptions.

Each proxy error carries the HTTP status it is surfaced with, so the
interface layer can translate without knowing the individual classes.
"""

from __future__ import annotations


class ProxyError(Exception):
    """Base class for all proxy errors (unexpected failure -> 500)."""

    status_code: int = 500

    def __init__(self, message: str = "Proxy error") -> None:
        super().__init__(message)
        self.message = message


class InvalidTargetError(ProxyError):
    """Missing or malformed target URL, or a non-http(s) scheme."""

    status_code = 400


class BlockedTargetError(ProxyError):
    """Target points into loopback, link-local or private address space."""

    status_code = 400


class UpstreamStatusError(ProxyError):
    """Upstream answered with something other than 2xx/206."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Upstream error: {status_code}")
        self.status_code = status_code


class UpstreamTimeoutError(ProxyError):
    """Upstream did not answer within the configured timeout."""

    status_code = 504


class UpstreamUnavailableError(ProxyError):
    """Network-level failure talking to the upstream."""

    status_code = 502


class UpstreamContentError(ProxyError):
    """Upstream body could not be decoded as its declared type."""

    status_code = 502
