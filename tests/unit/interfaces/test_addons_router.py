"""Tests for the addon router (manifest, streams, subtitles)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from flixnest.domain.entities.addon import (
    AddonManifest,
    PlayableStream,
    StreamDescriptor,
    StreamQuality,
    StreamRequest,
    SubtitleDescriptor,
)
from flixnest.infrastructure.config.schema import AppConfig
from flixnest.interfaces.api.addons.router import _parse_request, router


def _make_app(
    *,
    resolve_streams_uc: AsyncMock | None = None,
    resolve_subtitles_uc: AsyncMock | None = None,
    inspect_addon_uc: MagicMock | None = None,
    config: AppConfig | None = None,
) -> FastAPI:
    """Create a minimal FastAPI app with the addons router."""
    app = FastAPI()
    app.include_router(router, prefix="/api")
    app.state.config = config or AppConfig()
    app.state.resolve_streams_uc = resolve_streams_uc or AsyncMock()
    app.state.resolve_subtitles_uc = resolve_subtitles_uc or AsyncMock()
    app.state.inspect_addon_uc = inspect_addon_uc or _inspect_uc()
    return app


def _inspect_uc(
    manifest: AddonManifest | None = None, *, blocked: bool = False
) -> MagicMock:
    uc = MagicMock()
    uc.is_blocked.return_value = blocked
    uc.execute = AsyncMock(return_value=manifest)
    return uc


def _playable() -> PlayableStream:
    return PlayableStream(
        descriptor=StreamDescriptor(
            url="https://cdn.example/master.m3u8",
            name="Example 1080p",
            title="Iron Man",
            addon_name="addon.example.com",
        ),
        quality=StreamQuality.HD_1080P,
        proxy_url="http://testserver/api/proxy?url=https%3A%2F%2Fcdn.example%2Fmaster.m3u8",
        vlc_playlist_url="http://testserver/api/vlc-playlist?stream=x",
        is_hls=True,
    )


class TestParseRequest:
    def test_movie(self) -> None:
        assert _parse_request("movie", "tt0371746", None, None) == StreamRequest(
            "movie", "tt0371746"
        )

    def test_tv_maps_to_series(self) -> None:
        result = _parse_request("tv", "tt0903747", 1, 5)
        assert result == StreamRequest("series", "tt0903747", 1, 5)

    def test_colon_id(self) -> None:
        result = _parse_request("series", "tt0903747:2:3", None, None)
        assert result == StreamRequest("series", "tt0903747", 2, 3)

    def test_non_numeric_episode(self) -> None:
        assert _parse_request("series", "tt0903747:a:3", None, None) is None

    def test_unknown_type(self) -> None:
        assert _parse_request("channel", "tt0371746", None, None) is None


class TestStreamsEndpoint:
    def test_returns_streams(self) -> None:
        uc = AsyncMock()
        uc.execute.return_value = [_playable()]
        client = TestClient(_make_app(resolve_streams_uc=uc))

        resp = client.get("/api/streams/movie/tt0371746")

        assert resp.status_code == 200
        [stream] = resp.json()["streams"]
        assert stream["name"] == "Example 1080p"
        assert stream["addon"] == "addon.example.com"
        assert stream["quality"] == "HD_1080P"
        assert stream["isHls"] is True
        assert stream["notWebReady"] is False
        assert stream["url"].startswith("http://testserver/api/proxy?")
        assert stream["vlcPlaylistUrl"].startswith("http://testserver/api/vlc-playlist?")

    def test_uses_configured_manifests_and_origin(self) -> None:
        uc = AsyncMock()
        uc.execute.return_value = []
        client = TestClient(_make_app(resolve_streams_uc=uc))

        client.get("/api/streams/series/tt0903747", params={"season": 1, "episode": 5})

        request, manifests, origin = uc.execute.await_args.args
        assert request == StreamRequest("series", "tt0903747", 1, 5)
        assert manifests == ["https://webstreamr.hayd.uk/manifest.json"]
        assert origin == "http://testserver"

    def test_addon_query_overrides_manifests(self) -> None:
        uc = AsyncMock()
        uc.execute.return_value = []
        config = AppConfig(server={"public_base_url": "https://tv.example.org"})
        client = TestClient(_make_app(resolve_streams_uc=uc, config=config))

        client.get(
            "/api/streams/movie/tt0371746",
            params=[
                ("addon", "https://a.example/manifest.json"),
                ("addon", "https://b.example/manifest.json"),
            ],
        )

        _, manifests, origin = uc.execute.await_args.args
        assert manifests == [
            "https://a.example/manifest.json",
            "https://b.example/manifest.json",
        ]
        assert origin == "https://tv.example.org"

    def test_invalid_type_is_400(self) -> None:
        uc = AsyncMock()
        client = TestClient(_make_app(resolve_streams_uc=uc))

        resp = client.get("/api/streams/channel/tt0371746")

        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid content type or id"}
        uc.execute.assert_not_awaited()


class TestSubtitlesEndpoint:
    def test_returns_subtitles(self) -> None:
        uc = AsyncMock()
        uc.execute.return_value = [
            SubtitleDescriptor(id="1", url="https://s.example/1.srt", lang="eng")
        ]
        client = TestClient(_make_app(resolve_subtitles_uc=uc))

        resp = client.get("/api/subtitles/movie/tt0371746")

        assert resp.status_code == 200
        assert resp.json() == {
            "subtitles": [{"id": "1", "url": "https://s.example/1.srt", "lang": "eng"}]
        }


class TestAddonManifestEndpoint:
    _URL = "https://addon.example.com/manifest.json"

    def test_returns_manifest(self) -> None:
        uc = _inspect_uc(
            AddonManifest(
                id="org.example.addon",
                name="Example",
                manifest_url=self._URL,
                version="1.2.0",
                types=["movie", "series"],
                resources=["stream"],
                id_prefixes=["tt"],
            )
        )
        client = TestClient(_make_app(inspect_addon_uc=uc))

        resp = client.get("/api/addons/manifest", params={"url": self._URL})

        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == "org.example.addon"
        assert body["types"] == ["movie", "series"]
        assert body["idPrefixes"] == ["tt"]
        assert body["manifestUrl"] == self._URL
        assert body["baseUrl"] == "https://addon.example.com"
        uc.execute.assert_awaited_once_with(self._URL)

    def test_missing_url_is_400(self) -> None:
        resp = TestClient(_make_app()).get("/api/addons/manifest")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing url parameter"}

    def test_private_host_is_400(self) -> None:
        uc = _inspect_uc()
        client = TestClient(_make_app(inspect_addon_uc=uc))

        resp = client.get(
            "/api/addons/manifest", params={"url": "http://127.1:7000/manifest.json"}
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "Blocked host"}
        uc.execute.assert_not_awaited()

    def test_blocklisted_addon_is_403(self) -> None:
        uc = _inspect_uc(blocked=True)
        client = TestClient(_make_app(inspect_addon_uc=uc))

        resp = client.get("/api/addons/manifest", params={"url": self._URL})

        assert resp.status_code == 403
        assert resp.json() == {"error": "Addon is blocked"}
        uc.execute.assert_not_awaited()

    def test_unavailable_manifest_is_502(self) -> None:
        client = TestClient(_make_app(inspect_addon_uc=_inspect_uc(None)))

        resp = client.get("/api/addons/manifest", params={"url": self._URL})

        assert resp.status_code == 502
        assert resp.json() == {"error": "Failed to fetch manifest"}
