"""Domain entities for the addon stream/subtitle protocol.

These mirror the JSON shapes returned by Stremio-style addons. Only the
fields the gateway uses are modelled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Literal

AddonContentType = Literal["movie", "series"]

_MANIFEST_SUFFIX = "/manifest.json"


class StreamQuality(IntEnum):
    """Ranked quality levels (higher value = better quality)."""

    UNKNOWN = 0
    SD = 20
    HD_720P = 60
    HD_1080P = 80
    UHD_4K = 100


@dataclass(frozen=True)
class AddonManifest:
    """Addon manifest (subset)."""

    id: str
    name: str
    manifest_url: str
    version: str = ""
    description: str = ""
    types: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    id_prefixes: list[str] = field(default_factory=list)
    catalogs: list[str] = field(default_factory=list)

    @property
    def base_url(self) -> str:
        """Addon root, i.e. the manifest URL without ``/manifest.json``."""
        return base_url_of(self.manifest_url)


def base_url_of(manifest_url: str) -> str:
    if manifest_url.endswith(_MANIFEST_SUFFIX):
        return manifest_url[: -len(_MANIFEST_SUFFIX)]
    return manifest_url.rstrip("/")


@dataclass(frozen=True)
class StreamRequest:
    """Which title (and episode) to resolve streams for."""

    content_type: AddonContentType
    content_id: str  # IMDb ID, e.g. "tt1234567"
    season: int | None = None
    episode: int | None = None

    @property
    def resource_id(self) -> str:
        """Addon resource id: ``tt123`` for movies, ``tt123:1:5`` for episodes."""
        if (
            self.content_type == "series"
            and self.season is not None
            and self.episode is not None
        ):
            return f"{self.content_id}:{self.season}:{self.episode}"
        return self.content_id


@dataclass(frozen=True)
class StreamDescriptor:
    """One candidate stream as returned by an addon."""

    url: str | None
    name: str = ""
    title: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    info_hash: str | None = None
    addon_name: str = ""
    not_web_ready: bool = False

    @property
    def label(self) -> str:
        return f"{self.name} {self.title}".strip()


@dataclass(frozen=True)
class SubtitleDescriptor:
    """External subtitle track."""

    id: str
    url: str
    lang: str


@dataclass(frozen=True)
class PlayableStream:
    """A stream descriptor ready for the player: ranked and proxied."""

    descriptor: StreamDescriptor
    quality: StreamQuality
    proxy_url: str
    vlc_playlist_url: str
    is_hls: bool = False
