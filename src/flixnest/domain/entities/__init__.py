from .addon import (
    AddonContentType,
    AddonManifest,
    PlayableStream,
    StreamDescriptor,
    StreamQuality,
    StreamRequest,
    SubtitleDescriptor,
)
from .proxy import ContentKind, HeaderBundle, ProxyRequest, VlcPlaylistSpec

__all__ = [
    "AddonContentType",
    "AddonManifest",
    "ContentKind",
    "HeaderBundle",
    "PlayableStream",
    "ProxyRequest",
    "StreamDescriptor",
    "StreamQuality",
    "StreamRequest",
    "SubtitleDescriptor",
    "VlcPlaylistSpec",
]
