"""Media proxy, HLS playlist rewriting, image proxy and VLC playlists."""

from flixnest.infrastructure.proxy.image_proxy import ImageProxy
from flixnest.infrastructure.proxy.media_proxy import MediaProxy
from flixnest.infrastructure.proxy.playlist_rewriter import (
    build_proxy_url,
    rewrite_playlist,
)
from flixnest.infrastructure.proxy.upstream import create_upstream_client
from flixnest.infrastructure.proxy.vlc_playlist import build_vlc_playlist

__all__ = [
    "ImageProxy",
    "MediaProxy",
    "build_proxy_url",
    "build_vlc_playlist",
    "create_upstream_client",
    "rewrite_playlist",
]
