"""Base utilities and shared imports for CLI module."""

from __future__ import annotations

import argparse
import os
import sys

from rich.console import Console

from ..api import LarkAPI
from ..core import get_logger

logger = get_logger("cli")

# Errors go to stderr so stdout stays clean for piping image keys
err_console = Console(stderr=True)


class CredentialError(Exception):
    """Raised when the app id or secret cannot be resolved."""

    pass


def resolve_credentials(args: argparse.Namespace) -> tuple[str, str]:
    """Resolve the credential from flags, falling back to the environment.

    Raises:
        CredentialError: If either value is empty.
    """
    app_id = getattr(args, "app_id", None) or os.environ.get("LARK_APP_ID", "")
    if not app_id:
        raise CredentialError("error: empty app id")
    app_secret = getattr(args, "app_secret", None) or os.environ.get("LARK_APP_SECRET", "")
    if not app_secret:
        raise CredentialError("error: empty app secret")
    return app_id, app_secret


def create_api(args: argparse.Namespace) -> LarkAPI:
    """Build a client from CLI arguments."""
    app_id, app_secret = resolve_credentials(args)
    return LarkAPI(app_id=app_id, app_secret=app_secret, timeout=args.timeout)


def print_error(message: object) -> None:
    err_console.print(str(message), style="red", markup=False, highlight=False, soft_wrap=True)


def read_stdin_bytes() -> bytes:
    return sys.stdin.buffer.read()


def read_stdin_text() -> str:
    return sys.stdin.read()


__all__ = [
    "CredentialError",
    "LarkAPI",
    "create_api",
    "err_console",
    "logger",
    "print_error",
    "read_stdin_bytes",
    "read_stdin_text",
    "resolve_credentials",
]
