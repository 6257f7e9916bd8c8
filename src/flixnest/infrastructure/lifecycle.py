"""Request tracking for readiness and drain-on-shutdown."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

log = structlog.get_logger(__name__)


class RequestTracker:
    """Count in-flight requests; report readiness; drain on stop.

    Long media streams keep requests open for minutes, so draining is
    bounded by a timeout and remaining streams are cut when it expires.
    """

    def __init__(self) -> None:
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._started = False
        self._stopping = False

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def is_stopping(self) -> bool:
        return self._stopping

    @property
    def is_ready(self) -> bool:
        return self._started and not self._stopping

    def mark_started(self) -> None:
        self._started = True

    @contextmanager
    def track(self) -> Iterator[None]:
        """Count the enclosed block as one in-flight request."""
        self._in_flight += 1
        self._idle.clear()
        try:
            yield
        finally:
            self._in_flight = max(0, self._in_flight - 1)
            if self._in_flight == 0:
                self._idle.set()

    async def drain(self, *, timeout: float = 10.0) -> bool:
        """Stop reporting ready and wait for in-flight requests.

        Returns True when everything finished within *timeout*.
        """
        self._stopping = True
        if self._in_flight == 0:
            return True
        log.info("shutdown_draining", in_flight=self._in_flight)
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout)
        except TimeoutError:
            log.warning(
                "shutdown_drain_timeout", in_flight=self._in_flight, timeout=timeout
            )
            return False
        log.info("shutdown_drained")
        return True

    def snapshot(self) -> dict[str, object]:
        return {
            "ready": self.is_ready,
            "stopping": self._stopping,
            "in_flight": self._in_flight,
        }
