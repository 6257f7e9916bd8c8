"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


class ServerConfig(BaseModel):
    """Public-facing server settings."""

    public_base_url: Optional[str] = Field(
        default=None,
        description=(
            "Externally visible base URL (e.g. https://tv.example.org). "
            "Used for proxied playlist URLs when running behind a reverse proxy."
        ),
    )
    playlist_title: str = Field(
        default="FlixNest",
        description="Display name written into generated VLC playlists.",
    )

    @field_validator("public_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().rstrip("/")
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("public_base_url must be an http(s) URL")
        return v


class ProxyConfig(BaseModel):
    """Media proxy upstream settings."""

    upstream_timeout_seconds: float = Field(
        default=20.0,
        description="Read/write/pool timeout for upstream fetches (seconds).",
    )
    connect_timeout_seconds: float = Field(
        default=10.0,
        description="Connect timeout for upstream fetches (seconds).",
    )
    max_redirects: int = Field(
        default=10,
        description="Max redirects followed per upstream request.",
    )
    max_connections: int = Field(
        default=200,
        description="Upstream connection pool size.",
    )
    max_keepalive_connections: int = Field(
        default=50,
        description="Idle keep-alive connections kept in the pool.",
    )
    resolve_hostnames: bool = Field(
        default=True,
        description=(
            "Resolve target hostnames and refuse those pointing at private "
            "addresses (DNS lookup per request)."
        ),
    )
    chunk_size: int = Field(
        default=65_536,
        description="Chunk size for streamed binary passthrough (bytes).",
    )

    @field_validator("upstream_timeout_seconds", "connect_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("max_redirects")
    @classmethod
    def _validate_redirects(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_redirects must be >= 0")
        return v


class ImageProxyConfig(BaseModel):
    """Poster/backdrop image proxy settings."""

    user_agent: str = Field(default="FlixNest Image Proxy")
    cache_control: str = Field(
        default="public, max-age=3600, stale-while-revalidate=86400",
        description="Cache-Control used when the upstream sends none.",
    )
    timeout_seconds: float = Field(default=15.0)


class AddonsConfig(BaseModel):
    """Addon resolution settings.

    The blocklists are applied when the addon list is admitted, never
    inside the proxy.
    """

    manifests: list[str] = Field(
        default_factory=lambda: ["https://webstreamr.hayd.uk/manifest.json"],
        description="Addon manifest URLs queried for streams.",
    )
    subtitles_url: str = Field(
        default="https://opensubtitles-v3.strem.io",
        description="Base URL of the subtitles addon.",
    )
    blocked_hosts: list[str] = Field(
        default_factory=list,
        description="Manifest hostnames that are never queried.",
    )
    blocked_manifests: list[str] = Field(
        default_factory=list,
        description="Exact manifest URLs that are never queried.",
    )
    max_concurrent: int = Field(
        default=5,
        description="Max parallel addon stream lookups.",
    )

    @field_validator("max_concurrent")
    @classmethod
    def _validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrent must be >= 1")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (server/proxy/image_proxy/addons/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="flixnest", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    image_proxy: ImageProxyConfig = Field(default_factory=ImageProxyConfig)
    addons: AddonsConfig = Field(default_factory=AddonsConfig)

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "server": self.server.model_dump(),
            "proxy": self.proxy.model_dump(),
            "image_proxy": self.image_proxy.model_dump(),
            "addons": self.addons.model_dump(),
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read FLIXNEST_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - FLIXNEST_PUBLIC_BASE_URL
    - FLIXNEST_UPSTREAM_TIMEOUT_SECONDS
    - FLIXNEST_RESOLVE_HOSTNAMES
    - FLIXNEST_ADDON_MANIFESTS (JSON list)
    - FLIXNEST_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="FLIXNEST_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    public_base_url: Optional[str] = None
    playlist_title: Optional[str] = None

    upstream_timeout_seconds: Optional[float] = None
    connect_timeout_seconds: Optional[float] = None
    max_redirects: Optional[int] = None
    resolve_hostnames: Optional[bool] = None

    addon_manifests: Optional[list[str]] = None
    subtitles_url: Optional[str] = None
    addon_max_concurrent: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
