"""Tests for the VLC playlist builder."""

from __future__ import annotations

import pytest

from flixnest.infrastructure.proxy.vlc_playlist import (
    build_vlc_playlist,
    to_absolute_url,
)

_ORIGIN = "https://tv.example.org"


class TestToAbsoluteUrl:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://cdn.example/video.m3u8", "https://cdn.example/video.m3u8"),
            ("http://cdn.example/video.mp4", "http://cdn.example/video.mp4"),
            ("/api/proxy?url=x", "https://tv.example.org/api/proxy?url=x"),
            ("api/proxy?url=x", "https://tv.example.org/api/proxy?url=x"),
        ],
    )
    def test_forms(self, url: str, expected: str) -> None:
        assert to_absolute_url(_ORIGIN, url) == expected


class TestBuildVlcPlaylist:
    def test_literal_output_with_subtitles(self) -> None:
        playlist = build_vlc_playlist(
            _ORIGIN,
            "https://cdn.example/video.m3u8",
            ["https://cdn.example/en.vtt", "https://cdn.example/fr.vtt"],
        )
        assert playlist.render() == (
            "#EXTM3U\n"
            "#EXTVLCOPT:input-slave=https://cdn.example/en.vtt#https://cdn.example/fr.vtt\n"
            "#EXTINF:-1,FlixNest\n"
            "https://cdn.example/video.m3u8"
        )

    def test_no_subtitles_three_lines(self) -> None:
        rendered = build_vlc_playlist(_ORIGIN, "https://cdn.example/video.m3u8").render()
        assert rendered.split("\n") == [
            "#EXTM3U",
            "#EXTINF:-1,FlixNest",
            "https://cdn.example/video.m3u8",
        ]

    def test_empty_subtitle_values_dropped(self) -> None:
        playlist = build_vlc_playlist(_ORIGIN, "https://cdn.example/v.m3u8", ["", ""])
        assert playlist.subtitle_urls == ()
        assert "#EXTVLCOPT" not in playlist.render()

    def test_relative_inputs_resolved_against_origin(self) -> None:
        playlist = build_vlc_playlist(
            _ORIGIN + "/", "/api/proxy?url=a", ["/api/proxy?url=sub"]
        )
        assert playlist.stream_url == "https://tv.example.org/api/proxy?url=a"
        assert playlist.subtitle_urls == ("https://tv.example.org/api/proxy?url=sub",)

    def test_custom_title(self) -> None:
        playlist = build_vlc_playlist(_ORIGIN, "https://cdn.example/v.mp4", title="Iron Man")
        assert "#EXTINF:-1,Iron Man" in playlist.render().split("\n")
