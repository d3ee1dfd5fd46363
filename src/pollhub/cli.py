"""
Script: cli.py
Created: 2026-10-14
Purpose: CLI entry point for the PollHub server
Keywords: cli, argparse, uvicorn, entrypoint, pollhub
Status: active
Prerequisites:
  - uvicorn
Changelog:
  - 2026-10-14: Initial version
See-Also: app.py, config.py
"""

import argparse
import logging
import sys

from .config import Settings

logger = logging.getLogger("pollhub")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO"):
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="PollHub - Long-poll notification broker for IoT devices"
    )
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Port to bind (default: {settings.port})")
    parser.add_argument("--log-level", default=settings.log_level, help=f"Log level (default: {settings.log_level})")
    return parser


def main(argv=None):
    """CLI entry point for pollhub-server command."""
    import uvicorn

    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)

    configure_logging(args.log_level.upper())
    logger.info("Server running on port %d", args.port)
    for warning in settings.missing_warnings():
        logger.warning("Warning: %s", warning)

    from .app import create_app
    app = create_app(settings)
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_config=None,
        timeout_graceful_shutdown=int(max(1, settings.shutdown_grace)),
    )
