"""CLI module for larkslim.

This module provides the command-line interface.
"""

from __future__ import annotations

from collections.abc import Sequence

from .commands import cmd_msg, cmd_serve, cmd_upload_image
from .parser import build_parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Optional sequence of CLI arguments (without the program name).

    Returns:
        Process exit code. 0 for success.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        raise SystemExit(0)

    handlers = {
        "msg": cmd_msg,
        "upload-image": cmd_upload_image,
        "serve": cmd_serve,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


def run() -> None:
    """Console script entry point."""
    raise SystemExit(main())


__all__ = [
    "main",
    "run",
    "build_parser",
    "cmd_msg",
    "cmd_serve",
    "cmd_upload_image",
]
