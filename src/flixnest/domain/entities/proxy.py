"""Domain entities for the media proxy and playlist generator.

Pure value objects; no framework dependencies, no I/O.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

ProxyMethod = Literal["GET", "HEAD"]


class ContentKind(str, Enum):
    """How a proxied response body is shaped before it reaches the player."""

    JSON = "json"
    PLAYLIST = "playlist"
    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class HeaderBundle:
    """Caller-supplied upstream headers threaded through proxied URLs.

    Serialized as a JSON object in the ``headers`` query parameter so that
    a rewritten segment URL can be fetched later with the same headers,
    without any server-side session.
    """

    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, raw: str | None) -> HeaderBundle:
        """Parse the ``headers`` query parameter.

        Header hints are advisory: anything that is not a JSON object of
        string values is dropped and an empty (or filtered) bundle returned.
        """
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except ValueError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        return cls(
            {
                str(k): v
                for k, v in data.items()
                if isinstance(k, str) and isinstance(v, str)
            }
        )

    def get(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def encode(self) -> str | None:
        """JSON form for the ``headers`` query parameter, ``None`` if empty."""
        if not self.headers:
            return None
        return json.dumps(self.headers, separators=(",", ":"))

    def __bool__(self) -> bool:
        return bool(self.headers)


@dataclass(frozen=True)
class ProxyRequest:
    """One validated inbound proxy request."""

    target_url: str
    forwarded_headers: HeaderBundle = field(default_factory=HeaderBundle)
    range_header: str | None = None
    method: ProxyMethod = "GET"


@dataclass(frozen=True)
class VlcPlaylistSpec:
    """Single-stream playlist for handoff to an external player."""

    stream_url: str
    subtitle_urls: tuple[str, ...] = ()
    title: str = "FlixNest"

    def render(self) -> str:
        lines = ["#EXTM3U"]
        if self.subtitle_urls:
            # VLC expects a '#'-delimited list of slave inputs.
            lines.append(f"#EXTVLCOPT:input-slave={'#'.join(self.subtitle_urls)}")
        lines.append(f"#EXTINF:-1,{self.title}")
        lines.append(self.stream_url)
        return "\n".join(lines)
