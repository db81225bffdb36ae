"""Command line entry point serving the documentation front-end."""
from __future__ import annotations

import argparse
import dataclasses
import logging
from typing import Sequence

import uvicorn

from .app import build_app
from .utils.config import CMSSettings

logger = logging.getLogger("docfront.cli")


def build_parser(defaults: CMSSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Serve API documentation articles stored in a headless CMS"
    )
    parser.add_argument(
        "--cms-url",
        type=str,
        default=defaults.base_url,
        help=f"CMS base URL, default: {defaults.base_url}",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Bind address, default: 127.0.0.1",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=3000,
        help="Listen port, default: 3000",
    )
    parser.add_argument(
        "--env",
        type=str,
        default=defaults.environment,
        choices=["development", "production"],
        help=f"Runtime environment, default: {defaults.environment}",
    )
    parser.add_argument("--debug", action="store_true", help="Shorthand for --env development")
    return parser


def settings_from_args(args: argparse.Namespace, defaults: CMSSettings) -> CMSSettings:
    environment = "development" if args.debug else args.env
    return dataclasses.replace(defaults, base_url=args.cms_url, environment=environment)


def main(argv: Sequence[str] | None = None) -> None:
    defaults = CMSSettings.from_env()
    args = build_parser(defaults).parse_args(argv)
    settings = settings_from_args(args, defaults)
    app = build_app(settings)
    logger.info("[docfront] Reading articles from %s", settings.base_url)
    logger.info("[docfront] Serving on http://%s:%s/articles", args.host, args.port)
    uvicorn.run(app, host=args.host, port=int(args.port))


if __name__ == "__main__":  # pragma: no cover
    main()


__all__ = ["build_parser", "main", "settings_from_args"]
