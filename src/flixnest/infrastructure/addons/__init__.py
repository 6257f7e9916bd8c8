"""Addon protocol client, blocklist and stream ranking."""

from flixnest.infrastructure.addons.blocklist import AddonBlocklist
from flixnest.infrastructure.addons.client import HttpxAddonClient
from flixnest.infrastructure.addons.release_parser import quality_of
from flixnest.infrastructure.addons.stream_sorter import StreamSorter

__all__ = ["AddonBlocklist", "HttpxAddonClient", "StreamSorter", "quality_of"]
