"""Quality ranking for resolved streams."""

from __future__ import annotations

from flixnest.domain.entities.addon import PlayableStream


class StreamSorter:
    """Ranking: best quality first.

    Streams the browser cannot play directly (``notWebReady``) sink below
    web-ready streams of the same quality. Ties keep addon order.
    """

    @staticmethod
    def rank(stream: PlayableStream) -> int:
        penalty = 1 if stream.descriptor.not_web_ready else 0
        return stream.quality.value * 2 - penalty

    def sort(self, streams: list[PlayableStream]) -> list[PlayableStream]:
        """Return a new list sorted descending by rank (stable)."""
        return sorted(streams, key=self.rank, reverse=True)
