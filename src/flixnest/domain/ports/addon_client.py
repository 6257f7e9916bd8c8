"""Port for talking to addon services."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from flixnest.domain.entities.addon import (
    AddonManifest,
    StreamDescriptor,
    StreamRequest,
    SubtitleDescriptor,
)


@runtime_checkable
class AddonClientPort(Protocol):
    """Resolves streams and subtitles from addon endpoints.

    Implementations never raise for remote failures; they log and
    return ``None`` / an empty list so that one broken addon does not
    take down resolution for the others.
    """

    async def fetch_manifest(self, manifest_url: str) -> AddonManifest | None:
        """Fetch and parse an addon manifest."""
        ...

    async def fetch_streams(
        self, manifest_url: str, request: StreamRequest
    ) -> list[StreamDescriptor]:
        """Return candidate streams for a title from one addon."""
        ...

    async def fetch_subtitles(
        self, request: StreamRequest
    ) -> list[SubtitleDescriptor]:
        """Return subtitle tracks for a title."""
        ...
