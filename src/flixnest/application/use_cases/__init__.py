from .stream_resolution import (
    InspectAddonUseCase,
    ResolveStreamsUseCase,
    ResolveSubtitlesUseCase,
)

__all__ = ["InspectAddonUseCase", "ResolveStreamsUseCase", "ResolveSubtitlesUseCase"]
