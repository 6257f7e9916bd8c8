"""Addon blocklist, applied when the addon list is admitted."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlsplit

import structlog

log = structlog.get_logger(__name__)


class AddonBlocklist:
    """Banned addon manifest hosts and exact manifest URLs.

    Host entries also match subdomains (``example.com`` blocks
    ``addon.example.com``).
    """

    def __init__(
        self,
        blocked_hosts: Iterable[str] = (),
        blocked_manifests: Iterable[str] = (),
    ) -> None:
        self._hosts = frozenset(h.strip().lower() for h in blocked_hosts if h.strip())
        self._manifests = frozenset(
            m.strip().rstrip("/") for m in blocked_manifests if m.strip()
        )

    def is_blocked(self, manifest_url: str) -> bool:
        if manifest_url.strip().rstrip("/") in self._manifests:
            return True
        try:
            host = (urlsplit(manifest_url).hostname or "").lower()
        except ValueError:
            # Unparseable (e.g. "http://[bad/"); the fetch itself will fail.
            return False
        if not host:
            return False
        return any(host == h or host.endswith(f".{h}") for h in self._hosts)

    def filter(self, manifest_urls: Iterable[str]) -> list[str]:
        """Drop blocked manifests, keeping order."""
        allowed = []
        for url in manifest_urls:
            if self.is_blocked(url):
                log.info("addon_blocked_by_config", manifest_url=url)
                continue
            allowed.append(url)
        return allowed
