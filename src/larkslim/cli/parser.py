"""CLI argument parser."""

from __future__ import annotations

import argparse

from .. import __version__


def _add_credential_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--app-id",
        default="",
        help="lark app id (you can also use env LARK_APP_ID)",
    )
    parser.add_argument(
        "--app-secret",
        default="",
        help="lark app secret (you can also use env LARK_APP_SECRET)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="HTTP request timeout in seconds (default: 10)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns:
        ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="larkslim",
        description="Lark open API tools and webhook receiver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Send text to a chat
  larkslim msg --target oc_xxx "Hello, Lark!"

  # Upload an image and send it to a user
  larkslim upload-image --send ou_xxx picture.png

  # Run the webhook receiver
  larkslim serve -c config.yaml --debug
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s v{__version__}",
        help="Show program's version number and exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # msg command
    msg_parser = subparsers.add_parser("msg", help="send text (or stdin) to lark")
    _add_credential_args(msg_parser)
    msg_parser.add_argument(
        "--target",
        required=True,
        help="send message to open_id, user_id, email or chat_id",
    )
    msg_parser.add_argument("text", nargs="*", help="Message text (reads stdin when omitted)")

    # upload-image command
    image_parser = subparsers.add_parser(
        "upload-image", help="upload images from files or stdin to lark"
    )
    _add_credential_args(image_parser)
    image_parser.add_argument(
        "--type",
        default="message",
        help="image type (message or avatar)",
    )
    image_parser.add_argument(
        "--send",
        default="",
        help="also send image message to open_id, user_id, email or chat_id",
    )
    image_parser.add_argument("files", nargs="*", help="Image files (reads stdin when omitted)")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the webhook receiver")
    serve_parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to YAML configuration file (default: environment only)",
    )
    serve_parser.add_argument("--host", default=None, help="Host to bind the receiver to")
    serve_parser.add_argument(
        "-p", "--port", type=int, default=None, help="Port to bind the receiver to"
    )
    serve_parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug/verbose logging mode",
    )

    return parser
