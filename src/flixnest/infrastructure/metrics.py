"""Zero-impact in-memory proxy metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop: no locks, no I/O, no external dependencies.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class KindStats:
    """Accumulated statistics for one response kind (json/playlist/...)."""

    requests: int = 0
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        avg_ms = (
            round(self.total_duration_ns / self.requests / 1_000_000, 1)
            if self.requests
            else 0.0
        )
        return {"requests": self.requests, "avg_upstream_ms": avg_ms}


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector.

    Thread-safety is not required; the async event loop is
    single-threaded, so plain integer increments are atomic enough.
    """

    _kinds: dict[str, KindStats] = field(default_factory=dict)
    _errors: dict[str, int] = field(default_factory=dict)
    _upstream_statuses: dict[int, int] = field(default_factory=dict)
    _bytes_streamed: int = 0
    _playlists_rewritten: int = 0
    _images: int = 0
    _vlc_playlists: int = 0
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_response(self, kind: str, duration_ns: int) -> None:
        """Record one successful upstream fetch of the given kind."""
        stats = self._kinds.get(kind)
        if stats is None:
            stats = KindStats()
            self._kinds[kind] = stats
        stats.requests += 1
        stats.total_duration_ns += duration_ns

    def record_error(self, reason: str, upstream_status: int | None = None) -> None:
        """Record a refused or failed proxy request."""
        self._errors[reason] = self._errors.get(reason, 0) + 1
        if upstream_status is not None:
            self._upstream_statuses[upstream_status] = (
                self._upstream_statuses.get(upstream_status, 0) + 1
            )

    def record_bytes(self, count: int) -> None:
        self._bytes_streamed += count

    def record_playlist_rewrite(self) -> None:
        self._playlists_rewritten += 1

    def record_image(self) -> None:
        self._images += 1

    def record_vlc_playlist(self) -> None:
        self._vlc_playlists += 1

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable snapshot of all metrics."""
        uptime_ns = time.perf_counter_ns() - self._start_ns
        return {
            "uptime_seconds": round(uptime_ns / 1_000_000_000, 1),
            "proxy": {
                "kinds": {
                    name: stats.snapshot()
                    for name, stats in sorted(self._kinds.items())
                },
                "errors": dict(sorted(self._errors.items())),
                "upstream_statuses": {
                    str(status): count
                    for status, count in sorted(self._upstream_statuses.items())
                },
                "bytes_streamed": self._bytes_streamed,
                "playlists_rewritten": self._playlists_rewritten,
            },
            "images_proxied": self._images,
            "vlc_playlists": self._vlc_playlists,
        }
