"""``flixnest`` command: load the layered config once and serve the app."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from flixnest.infrastructure.config import AppConfig, load_config
from flixnest.infrastructure.logging.setup import configure_logging
from flixnest.interfaces.app import create_app

log = structlog.get_logger(__name__)

_DEFAULT_HOST = "0.0.0.0"
_DEFAULT_PORT = 3000

# argparse dest -> flat override key understood by load_config()
_OVERRIDE_FLAGS: dict[str, str] = {
    "environment": "environment",
    "public_base_url": "public_base_url",
    "addon": "addon_manifests",
    "resolve_hostnames": "resolve_hostnames",
    "log_level": "log_level",
    "log_format": "log_format",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flixnest",
        description="Streaming media proxy and addon gateway.",
    )

    bind = parser.add_argument_group("binding")
    bind.add_argument("--host", help=f"Bind host (env HOST, default {_DEFAULT_HOST}).")
    bind.add_argument(
        "--port", type=int, help=f"Bind port (env PORT, default {_DEFAULT_PORT})."
    )

    files = parser.add_argument_group("config files")
    files.add_argument("--config", type=Path, help="YAML config file.")
    files.add_argument("--dotenv", type=Path, help=".env file with FLIXNEST_* vars.")

    over = parser.add_argument_group("overrides (beat YAML and env)")
    over.add_argument("--environment", choices=["dev", "test", "prod"])
    over.add_argument(
        "--public-base-url",
        help="Origin put into rewritten playlist and VLC URLs.",
    )
    over.add_argument(
        "--addon",
        action="append",
        metavar="MANIFEST_URL",
        help="Addon manifest URL; repeat to replace the configured list.",
    )
    over.add_argument(
        "--resolve-hostnames",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="DNS-check proxy targets against private address ranges.",
    )
    over.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    over.add_argument("--log-format", choices=["json", "console"])
    return parser


def cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flags that were actually given, keyed for load_config()."""
    return {
        key: getattr(args, dest)
        for dest, key in _OVERRIDE_FLAGS.items()
        if getattr(args, dest) is not None
    }


def bind_address(args: argparse.Namespace) -> tuple[str, int]:
    host = args.host or os.getenv("HOST") or _DEFAULT_HOST
    port = args.port if args.port is not None else int(os.getenv("PORT", _DEFAULT_PORT))
    return host, port


def load_from_args(args: argparse.Namespace) -> AppConfig:
    return load_config(
        config_path=args.config,
        dotenv_path=args.dotenv,
        cli_overrides=cli_overrides(args),
    )


def start(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    config = load_from_args(args)
    host, port = bind_address(args)

    log_config = configure_logging(config)
    log.info(
        "flixnest_starting",
        host=host,
        port=port,
        environment=config.environment,
        addons=len(config.addons.manifests),
    )
    uvicorn.run(create_app(config), host=host, port=port, log_config=log_config)


if __name__ == "__main__":
    start()
