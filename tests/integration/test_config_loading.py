"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from flixnest.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "FLIXNEST_PUBLIC_BASE_URL",
        "FLIXNEST_UPSTREAM_TIMEOUT_SECONDS",
        "FLIXNEST_LOG_LEVEL",
        "FLIXNEST_ENVIRONMENT",
        "FLIXNEST_RESOLVE_HOSTNAMES",
        "FLIXNEST_ADDON_MANIFESTS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "flixnest-test",
        "environment": "test",
        "server": {"public_base_url": "https://tv.example.org/"},
        "proxy": {"upstream_timeout_seconds": 30, "max_redirects": 3},
        "addons": {
            "manifests": ["https://addon.example.com/manifest.json"],
            "blocked_hosts": ["bad.example.com"],
        },
        "logging": {"level": "DEBUG", "format": "console"},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "flixnest"
        assert config.environment == "dev"
        assert config.server.public_base_url is None
        assert config.server.playlist_title == "FlixNest"
        assert config.proxy.upstream_timeout_seconds == 20.0
        assert config.proxy.connect_timeout_seconds == 10.0
        assert config.proxy.resolve_hostnames is True
        assert config.image_proxy.user_agent == "FlixNest Image Proxy"
        assert config.addons.subtitles_url == "https://opensubtitles-v3.strem.io"
        assert config.log_level == "INFO"
        assert config.log_format == "console"

    def test_prod_derives_json_logs(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    def test_yaml_overrides_defaults(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "flixnest-test"
        assert config.server.public_base_url == "https://tv.example.org"
        assert config.proxy.upstream_timeout_seconds == 30
        assert config.proxy.max_redirects == 3
        # Untouched keys in the same section keep their defaults.
        assert config.proxy.connect_timeout_seconds == 10.0
        assert config.addons.blocked_hosts == ["bad.example.com"]
        assert config.log_level == "DEBUG"

    def test_missing_yaml_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nope.yaml")

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)


class TestEnvOverrides:
    def test_env_beats_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FLIXNEST_UPSTREAM_TIMEOUT_SECONDS", "45")
        monkeypatch.setenv("FLIXNEST_LOG_LEVEL", "WARNING")
        config = load_config(config_path=yaml_config)
        assert config.proxy.upstream_timeout_seconds == 45
        assert config.log_level == "WARNING"

    def test_addon_manifests_from_json_env(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(
            "FLIXNEST_ADDON_MANIFESTS", '["https://env.example.com/manifest.json"]'
        )
        monkeypatch.setenv("FLIXNEST_RESOLVE_HOSTNAMES", "false")
        config = load_config()
        assert config.addons.manifests == ["https://env.example.com/manifest.json"]
        assert config.proxy.resolve_hostnames is False

    def test_dotenv_file_loaded(
        self, tmp_path: Path, request: pytest.FixtureRequest
    ) -> None:
        request.addfinalizer(lambda: os.environ.pop("FLIXNEST_PUBLIC_BASE_URL", None))
        dotenv = tmp_path / ".env"
        dotenv.write_text(
            "FLIXNEST_PUBLIC_BASE_URL=https://dotenv.example.org\n", encoding="utf-8"
        )
        config = load_config(dotenv_path=dotenv)
        assert config.server.public_base_url == "https://dotenv.example.org"


class TestCliOverrides:
    def test_cli_beats_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FLIXNEST_PUBLIC_BASE_URL", "https://env.example.org")
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"public_base_url": "https://cli.example.org"},
        )
        assert config.server.public_base_url == "https://cli.example.org"


class TestLayerMerging:
    def test_flat_key_beats_section_in_same_layer(self) -> None:
        config = load_config(
            cli_overrides={
                "proxy": {"max_redirects": 2},
                "max_redirects": 4,
            }
        )
        assert config.proxy.max_redirects == 4

    def test_defaults_not_mutated_between_loads(self) -> None:
        load_config(cli_overrides={"addons": {"blocked_hosts": ["x.example"]}})
        assert load_config().addons.blocked_hosts == []

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).proxy.max_redirects == 10


class TestValidation:
    def test_public_base_url_must_be_http(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"public_base_url": "tv.example.org"})

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"upstream_timeout_seconds": 0})

    def test_sectioned_dump_round_trips(self) -> None:
        config = load_config()
        dumped = config.to_sectioned_dict()
        assert dumped["logging"] == {"level": "INFO", "format": "console"}
        assert dumped["proxy"]["max_redirects"] == 10
