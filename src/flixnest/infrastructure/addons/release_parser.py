"""Stream quality detection using guessit, with badge keyword fallback."""

from __future__ import annotations

import re

from guessit import guessit

from flixnest.domain.entities.addon import StreamDescriptor, StreamQuality

_SCREEN_SIZE_TO_QUALITY: dict[str, StreamQuality] = {
    "2160p": StreamQuality.UHD_4K,
    "1080p": StreamQuality.HD_1080P,
    "1080i": StreamQuality.HD_1080P,
    "720p": StreamQuality.HD_720P,
    "576p": StreamQuality.SD,
    "480p": StreamQuality.SD,
    "360p": StreamQuality.SD,
}

# Checked in order; first match wins.
_BADGES: tuple[tuple[re.Pattern[str], StreamQuality], ...] = (
    (re.compile(r"(?i)\b(4k|2160p|uhd)\b"), StreamQuality.UHD_4K),
    (re.compile(r"(?i)\b(1080p|fhd|full\s?hd)\b"), StreamQuality.HD_1080P),
    (re.compile(r"(?i)\b(720p|hd)\b"), StreamQuality.HD_720P),
    (re.compile(r"(?i)\b(480p|sd)\b"), StreamQuality.SD),
)


def _quality_from_badges(text: str) -> StreamQuality:
    for pattern, quality in _BADGES:
        if pattern.search(text):
            return quality
    return StreamQuality.UNKNOWN


def quality_of(descriptor: StreamDescriptor) -> StreamQuality:
    """Determine stream quality from its name and title.

    Priority: 1) guessit screen_size of the title, 2) badge keywords in
    name and title (addons often put "4K" or "1080p" into ``name``).
    """
    if descriptor.title:
        # Addon titles are multi-line (release name, size, source).
        first_line = descriptor.title.splitlines()[0]
        screen_size = guessit(first_line).get("screen_size")
        if screen_size in _SCREEN_SIZE_TO_QUALITY:
            return _SCREEN_SIZE_TO_QUALITY[screen_size]
    return _quality_from_badges(descriptor.label)
