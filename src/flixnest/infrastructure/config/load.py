"""Layered configuration: defaults < YAML file < FLIXNEST_* env < CLI flags.

Every layer is folded into the sectioned shape of ``AppConfig`` first,
then merged key by key; validation runs once on the merged result.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_SECTIONS = ("server", "proxy", "image_proxy", "addons", "logging")
_TOP_LEVEL = ("app_name", "environment")

# Flat ENV/CLI key -> "section.key"
_FLAT_KEYS: dict[str, str] = {
    "public_base_url": "server.public_base_url",
    "playlist_title": "server.playlist_title",
    "upstream_timeout_seconds": "proxy.upstream_timeout_seconds",
    "connect_timeout_seconds": "proxy.connect_timeout_seconds",
    "max_redirects": "proxy.max_redirects",
    "resolve_hostnames": "proxy.resolve_hostnames",
    "addon_manifests": "addons.manifests",
    "subtitles_url": "addons.subtitles_url",
    "addon_max_concurrent": "addons.max_concurrent",
    "log_level": "logging.level",
    "log_format": "logging.format",
}


def _fold(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Sectioned view of one layer. Unknown keys are dropped."""
    folded: dict[str, Any] = {k: layer[k] for k in _TOP_LEVEL if k in layer}
    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            folded[section] = dict(block)
    # Flat keys after sections: within one layer the explicit flat form wins.
    for flat, dotted in _FLAT_KEYS.items():
        if flat in layer:
            section, key = dotted.split(".")
            folded.setdefault(section, {})[key] = layer[flat]
    return folded


def _merge(into: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        current = into.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge(current, value)
        else:
            into[key] = deepcopy(value)


def _existing(path: Path | None) -> Path | None:
    if path is not None and not path.exists():
        raise FileNotFoundError(path)
    return path


def _yaml_layer(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"{path}: config YAML must be a mapping, not {type(data).__name__}"
        )
    return data


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Build the validated AppConfig. Reads files, never writes any.

    Raises:
        FileNotFoundError: a given config or dotenv path does not exist.
        ValueError: the YAML file is not a mapping.
        pydantic.ValidationError: the merged values are invalid.
    """
    dotenv_path = _existing(dotenv_path)
    config_path = _existing(config_path)

    if dotenv_path is not None:
        # .env only fills gaps; real environment variables keep precedence.
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [DEFAULT_CONFIG]
    if config_path is not None:
        layers.append(_yaml_layer(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _merge(merged, _fold(layer))
    return AppConfig.model_validate(merged)
