"""Webhook receiver CLI command."""

from __future__ import annotations

import argparse
from pathlib import Path

from ...api import LarkAPI
from ...core import LarkConfig, setup_logging
from ...server import EventDetail, LarkServer
from .. import base


def load_config(args: argparse.Namespace) -> LarkConfig:
    """Load the YAML config if given, otherwise the environment, then apply flags."""
    if args.config:
        config = LarkConfig.from_yaml(Path(args.config))
    else:
        config = LarkConfig.from_env()

    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port
    if args.debug:
        config.logging.level = "DEBUG"
    return config


def log_event(event: EventDetail) -> None:
    base.logger.info(
        "event %s from %s in %s: %s",
        event.type,
        event.open_id or event.user_open_id,
        event.chat_id,
        event.text_without_at_bot,
    )


def build_server(config: LarkConfig) -> tuple[LarkServer, LarkAPI | None]:
    """Wire a receiver to a client when the credential is configured."""
    api = LarkAPI.from_config(config.api) if config.api.app_id else None
    server = LarkServer(
        config.server,
        token_supplier=api.get_access_token if api else None,
        event_handler=log_event,
    )
    return server, api


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the webhook receiver until interrupted."""
    try:
        config = load_config(args)
    except (FileNotFoundError, ValueError) as exc:
        base.print_error(f"error: {exc}")
        return 1

    setup_logging(config.logging)

    try:
        server, api = build_server(config)
    except ValueError as exc:
        base.print_error(f"error: {exc}")
        return 1

    try:
        server.serve()
    except KeyboardInterrupt:
        base.logger.info("Receiver interrupted by user")
    finally:
        if api:
            api.close()
    return 0
